import asyncio
import threading
from dataclasses import replace

import numpy as np
import pytest

from sweet_spot.models import CandidatePick
from sweet_spot.simulation.hybrid import hybrid_simulate
from sweet_spot.simulation.runner import (
    SimulatedParlay,
    SimulationProgress,
    SimulatorConfig,
    check_viability,
    rank_parlays,
    run_simulation,
    run_simulation_async,
)

TEAMS = ["Miami Heat", "Boston Celtics", "Denver Nuggets", "New York Knicks", "Sacramento Kings"]


def _candidates() -> list[CandidatePick]:
    return [
        CandidatePick(
            pick_id=f"c{i}",
            player_name=f"Player {i}",
            prop_type="points",
            line=20.5,
            side="over",
            team_name=team,
            confidence_score=0.9 - i * 0.05,
            projected_value=26.0 - i,
            event_id=f"g{i // 2}",
        )
        for i, team in enumerate(TEAMS)
    ]


def _config(**overrides: object) -> SimulatorConfig:
    payload: dict[str, object] = {"mode": "quick", "max_combinations": 4}
    payload.update(overrides)
    return SimulatorConfig(**payload)  # type: ignore[arg-type]


def test_simulator_config_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError, match="unknown simulation mode"):
        SimulatorConfig(mode="turbo")  # type: ignore[arg-type]
    assert SimulatorConfig(mode="deep").iterations == 50_000


def test_run_simulation_completes_and_ranks() -> None:
    run = run_simulation(_candidates(), 2, config=_config(), rng=np.random.default_rng(11))

    assert run.outcome == "completed"
    assert run.progress.stage == "complete"
    assert run.progress.combinations_total == 4
    assert run.progress.combinations_simulated == 4
    assert [parlay.rank for parlay in run.parlays] == [1, 2, 3, 4]
    viable_flags = [parlay.viable for parlay in run.parlays]
    assert viable_flags == sorted(viable_flags, reverse=True)
    assert run.progress.viable_parlays == sum(viable_flags)
    for parlay in run.parlays:
        assert len(parlay.legs) == 2
        assert len(parlay.reasons) == 4
        assert parlay.simulation.iterations == 5_000


def test_run_simulation_is_seeded() -> None:
    first = run_simulation(_candidates(), 2, config=_config(), rng=np.random.default_rng(11))
    second = run_simulation(_candidates(), 2, config=_config(), rng=np.random.default_rng(11))
    assert [p.to_dict() for p in first.parlays] == [p.to_dict() for p in second.parlays]


def test_run_simulation_reports_progress() -> None:
    seen: list[SimulationProgress] = []
    run_simulation(
        _candidates(),
        2,
        config=_config(progress_every=2),
        rng=np.random.default_rng(1),
        on_progress=seen.append,
    )
    assert [progress.stage for progress in seen] == [
        "filtering",
        "simulating",
        "simulating",
        "ranking",
    ]
    assert [progress.combinations_simulated for progress in seen] == [0, 2, 4, 4]


def test_run_simulation_cancel_before_start() -> None:
    cancel = threading.Event()
    cancel.set()
    run = run_simulation(
        _candidates(), 2, config=_config(), rng=np.random.default_rng(1), cancel=cancel
    )
    assert run.outcome == "cancelled"
    assert run.parlays == ()
    assert run.progress.combinations_total == 4


def test_run_simulation_cancel_mid_run_keeps_partial_results() -> None:
    cancel = threading.Event()
    seen_stages: list[str] = []

    def on_progress(progress: SimulationProgress) -> None:
        seen_stages.append(progress.stage)
        if progress.stage == "simulating":
            cancel.set()

    run = run_simulation(
        _candidates(),
        2,
        config=_config(progress_every=1),
        rng=np.random.default_rng(1),
        cancel=cancel,
        on_progress=on_progress,
    )
    assert run.outcome == "cancelled"
    assert run.progress.combinations_simulated == 1
    assert seen_stages[-1] == "ranking"
    assert len(run.parlays) == 1
    assert run.parlays[0].rank == 1


def test_run_simulation_with_too_few_candidates() -> None:
    run = run_simulation(_candidates()[:1], 2, config=_config())
    assert run.outcome == "completed"
    assert run.parlays == ()
    assert run.best is None


def test_run_simulation_async_matches_sync() -> None:
    sync_run = run_simulation(_candidates(), 2, config=_config(), rng=np.random.default_rng(9))
    async_run = asyncio.run(
        run_simulation_async(_candidates(), 2, config=_config(), rng=np.random.default_rng(9))
    )
    assert async_run.outcome == "completed"
    assert [p.to_dict() for p in async_run.parlays] == [p.to_dict() for p in sync_run.parlays]


def test_check_viability_reasons() -> None:
    base = hybrid_simulate([], rng=np.random.default_rng(0))
    good = replace(
        base, hybrid_win_rate=0.3, overall_edge=0.05, sharpe_ratio=0.8, expected_value=0.1
    )
    bad = replace(
        base, hybrid_win_rate=0.05, overall_edge=0.01, sharpe_ratio=0.1, expected_value=-0.2
    )

    viable, reasons = check_viability(good, SimulatorConfig())
    assert viable is True
    assert all(reason.startswith("OK") for reason in reasons)

    viable, reasons = check_viability(bad, SimulatorConfig())
    assert viable is False
    assert reasons[0] == "Win rate 5.0% < 12% min"
    assert reasons[3] == "Negative EV: -0.200"


def test_rank_parlays_viable_first_then_sharpe() -> None:
    base = hybrid_simulate([], rng=np.random.default_rng(0))

    def parlay(name: str, *, viable: bool, sharpe: float) -> SimulatedParlay:
        leg = CandidatePick(
            pick_id=name, player_name=name, prop_type="points", line=1.5, side="over"
        )
        return SimulatedParlay(
            legs=(leg,),
            simulation=replace(base, sharpe_ratio=sharpe),
            viable=viable,
            reasons=(),
        )

    ranked = rank_parlays(
        [
            parlay("a", viable=False, sharpe=2.0),
            parlay("b", viable=True, sharpe=0.6),
            parlay("c", viable=True, sharpe=0.9),
            parlay("d", viable=True, sharpe=0.6),
        ]
    )
    assert [p.legs[0].pick_id for p in ranked] == ["c", "b", "d", "a"]
    assert [p.rank for p in ranked] == [1, 2, 3, 4]

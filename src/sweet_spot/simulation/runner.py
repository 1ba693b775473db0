"""Interruptible combinatorial viability simulator."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Literal

import numpy as np

from sweet_spot.models import CandidatePick
from sweet_spot.simulation.combinations import generate_combinations
from sweet_spot.simulation.hybrid import HybridResult, SimLeg, hybrid_simulate

logger = logging.getLogger(__name__)

Mode = Literal["quick", "standard", "deep"]
Stage = Literal["idle", "filtering", "simulating", "ranking", "complete"]
Outcome = Literal["completed", "cancelled"]

MODE_ITERATIONS: dict[str, int] = {
    "quick": 5_000,
    "standard": 25_000,
    "deep": 50_000,
}


@dataclass(frozen=True)
class SimulatorConfig:
    mode: Mode = "standard"
    min_win_rate: float = 0.12
    min_edge: float = 0.03
    min_sharpe: float = 0.5
    max_combinations: int = 100
    use_correlations: bool = True
    parametric_weight: float = 0.4
    monte_carlo_weight: float = 0.6
    progress_every: int = 5

    def __post_init__(self) -> None:
        if self.mode not in MODE_ITERATIONS:
            known = ", ".join(MODE_ITERATIONS)
            raise ValueError(f"unknown simulation mode: {self.mode} (expected one of: {known})")

    @property
    def iterations(self) -> int:
        return MODE_ITERATIONS[self.mode]


@dataclass(frozen=True)
class SimulationProgress:
    stage: Stage
    combinations_total: int
    combinations_simulated: int
    viable_parlays: int
    elapsed_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "combinations_total": self.combinations_total,
            "combinations_simulated": self.combinations_simulated,
            "viable_parlays": self.viable_parlays,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class SimulatedParlay:
    legs: tuple[CandidatePick, ...]
    simulation: HybridResult
    viable: bool
    reasons: tuple[str, ...]
    rank: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "viable": self.viable,
            "reasons": list(self.reasons),
            "legs": [leg.to_dict() for leg in self.legs],
            "simulation": self.simulation.to_dict(),
        }


@dataclass(frozen=True)
class SimulationRun:
    outcome: Outcome
    parlays: tuple[SimulatedParlay, ...]
    progress: SimulationProgress
    config: SimulatorConfig = field(default_factory=SimulatorConfig)

    @property
    def viable(self) -> tuple[SimulatedParlay, ...]:
        return tuple(parlay for parlay in self.parlays if parlay.viable)

    @property
    def best(self) -> SimulatedParlay | None:
        viable = self.viable
        return viable[0] if viable else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome,
            "mode": self.config.mode,
            "iterations": self.config.iterations,
            "progress": self.progress.to_dict(),
            "parlays": [parlay.to_dict() for parlay in self.parlays],
        }


def check_viability(result: HybridResult, config: SimulatorConfig) -> tuple[bool, list[str]]:
    """Apply win-rate, edge, Sharpe and EV thresholds; every check adds a reason line."""
    reasons: list[str] = []
    viable = True

    if result.hybrid_win_rate < config.min_win_rate:
        reasons.append(
            f"Win rate {result.hybrid_win_rate:.1%} < {config.min_win_rate:.0%} min"
        )
        viable = False
    else:
        reasons.append(f"OK win rate {result.hybrid_win_rate:.1%}")

    if result.overall_edge < config.min_edge:
        reasons.append(f"Edge {result.overall_edge:.1%} < {config.min_edge:.0%} min")
        viable = False
    else:
        reasons.append(f"OK edge {result.overall_edge:.1%}")

    if result.sharpe_ratio < config.min_sharpe:
        reasons.append(f"Sharpe {result.sharpe_ratio:.2f} < {config.min_sharpe:g} min")
        viable = False
    else:
        reasons.append(f"OK Sharpe {result.sharpe_ratio:.2f}")

    if result.expected_value < 0:
        reasons.append(f"Negative EV: {result.expected_value:.3f}")
        viable = False
    else:
        reasons.append(f"OK positive EV: +{result.expected_value:.3f}")

    return viable, reasons


def rank_parlays(parlays: Sequence[SimulatedParlay]) -> list[SimulatedParlay]:
    """Viable first, then Sharpe descending; ties keep simulation order."""
    ordered = sorted(
        parlays,
        key=lambda parlay: (not parlay.viable, -parlay.simulation.sharpe_ratio),
    )
    return [replace(parlay, rank=position) for position, parlay in enumerate(ordered, start=1)]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def iter_simulation(
    candidates: Sequence[CandidatePick],
    leg_count: int,
    *,
    config: SimulatorConfig,
    rng: np.random.Generator,
    sink: list[SimulatedParlay],
    cancel: threading.Event | None = None,
) -> Iterator[SimulationProgress]:
    """Simulate combinations one at a time, appending to `sink`.

    Yields a progress record after generation, after every `progress_every`
    combinations and once more as ranking starts. A set `cancel` event stops the
    run before the next combination.
    """
    started = time.perf_counter()
    combinations = generate_combinations(
        candidates,
        leg_count,
        rng=rng,
        max_combinations=config.max_combinations,
    )
    total = len(combinations)
    logger.info("generated %d combinations from %d candidates", total, len(candidates))
    yield SimulationProgress("filtering", total, 0, 0, _elapsed_ms(started))

    viable_count = 0
    simulated = 0
    step = max(1, config.progress_every)
    for position, combo in enumerate(combinations, start=1):
        if cancel is not None and cancel.is_set():
            logger.info("simulation cancelled after %d/%d combinations", position - 1, total)
            break
        result = hybrid_simulate(
            [SimLeg.from_candidate(candidate) for candidate in combo],
            rng=rng,
            iterations=config.iterations,
            use_correlations=config.use_correlations,
            parametric_weight=config.parametric_weight,
            monte_carlo_weight=config.monte_carlo_weight,
        )
        viable, reasons = check_viability(result, config)
        viable_count += int(viable)
        simulated = position
        sink.append(
            SimulatedParlay(legs=combo, simulation=result, viable=viable, reasons=tuple(reasons))
        )
        if position % step == 0 or position == total:
            yield SimulationProgress(
                "simulating", total, position, viable_count, _elapsed_ms(started)
            )
    yield SimulationProgress("ranking", total, simulated, viable_count, _elapsed_ms(started))


def _finish(
    sink: list[SimulatedParlay],
    last: SimulationProgress,
    *,
    config: SimulatorConfig,
    started: float,
) -> SimulationRun:
    ranked = rank_parlays(sink)
    outcome: Outcome = "cancelled" if len(sink) < last.combinations_total else "completed"
    progress = SimulationProgress(
        stage="complete",
        combinations_total=last.combinations_total,
        combinations_simulated=len(sink),
        viable_parlays=sum(1 for parlay in ranked if parlay.viable),
        elapsed_ms=_elapsed_ms(started),
    )
    logger.info(
        "simulation %s: %d/%d viable",
        outcome,
        progress.viable_parlays,
        progress.combinations_simulated,
    )
    return SimulationRun(outcome=outcome, parlays=tuple(ranked), progress=progress, config=config)


def _empty_run(config: SimulatorConfig) -> SimulationRun:
    return SimulationRun(
        outcome="completed",
        parlays=(),
        progress=SimulationProgress("complete", 0, 0, 0, 0),
        config=config,
    )


def run_simulation(
    candidates: Sequence[CandidatePick],
    leg_count: int,
    *,
    config: SimulatorConfig | None = None,
    rng: np.random.Generator | None = None,
    cancel: threading.Event | None = None,
    on_progress: Callable[[SimulationProgress], None] | None = None,
) -> SimulationRun:
    """Run the simulator to completion or until `cancel` is set.

    A cancelled run still returns every combination simulated so far, ranked.
    """
    resolved = config or SimulatorConfig()
    if len(candidates) < leg_count:
        logger.warning(
            "not enough candidates (%d) for %d-leg combinations", len(candidates), leg_count
        )
        return _empty_run(resolved)
    generator = rng if rng is not None else np.random.default_rng()
    started = time.perf_counter()
    sink: list[SimulatedParlay] = []
    last = SimulationProgress("idle", 0, 0, 0, 0)
    for progress in iter_simulation(
        candidates, leg_count, config=resolved, rng=generator, sink=sink, cancel=cancel
    ):
        last = progress
        if on_progress is not None:
            on_progress(progress)
    return _finish(sink, last, config=resolved, started=started)


async def run_simulation_async(
    candidates: Sequence[CandidatePick],
    leg_count: int,
    *,
    config: SimulatorConfig | None = None,
    rng: np.random.Generator | None = None,
    cancel: threading.Event | None = None,
    on_progress: Callable[[SimulationProgress], None] | None = None,
) -> SimulationRun:
    """Event-loop friendly variant that yields control after every progress record."""
    resolved = config or SimulatorConfig()
    if len(candidates) < leg_count:
        logger.warning(
            "not enough candidates (%d) for %d-leg combinations", len(candidates), leg_count
        )
        return _empty_run(resolved)
    generator = rng if rng is not None else np.random.default_rng()
    started = time.perf_counter()
    sink: list[SimulatedParlay] = []
    last = SimulationProgress("idle", 0, 0, 0, 0)
    for progress in iter_simulation(
        candidates, leg_count, config=resolved, rng=generator, sink=sink, cancel=cancel
    ):
        last = progress
        if on_progress is not None:
            on_progress(progress)
        await asyncio.sleep(0)
    return _finish(sink, last, config=resolved, started=started)

import numpy as np
import pytest

from sweet_spot.models import CandidatePick
from sweet_spot.simulation.hybrid import SimLeg, hybrid_simulate, quick_analysis


def _leg(leg_id: str, *, expected: float, line: float = 24.5, event: str | None = None) -> SimLeg:
    return SimLeg(
        leg_id=leg_id,
        prop_type="points",
        player_name=f"Player {leg_id}",
        line=line,
        side="over",
        expected_value=expected,
        event_id=event,
    )


def test_sim_leg_from_candidate_defaults() -> None:
    candidate = CandidatePick(
        pick_id="c1",
        player_name="Player A",
        prop_type="rebounds",
        line=9.5,
        side="under",
        team_name="Miami Heat",
    )
    leg = SimLeg.from_candidate(candidate)

    assert leg.american_odds == -110
    assert leg.expected_value == 9.5
    assert leg.implied_probability() == pytest.approx(110 / 210)


def test_hybrid_simulate_empty_legs() -> None:
    result = hybrid_simulate([], rng=np.random.default_rng(1))
    assert result.hybrid_win_rate == 0.0
    assert result.recommendation == "skip"
    assert result.leg_results == ()


def test_hybrid_simulate_is_seeded() -> None:
    legs = [_leg("a", expected=28.0, event="g1"), _leg("b", expected=27.0, event="g1")]
    first = hybrid_simulate(legs, rng=np.random.default_rng(7), iterations=20_000)
    second = hybrid_simulate(legs, rng=np.random.default_rng(7), iterations=20_000)
    assert first.to_dict() == second.to_dict()


def test_hybrid_simulate_blends_rates_and_prices_the_parlay() -> None:
    legs = [_leg("a", expected=28.0, event="g1"), _leg("b", expected=27.0, event="g1")]
    result = hybrid_simulate(legs, rng=np.random.default_rng(3), iterations=40_000)

    assert result.hybrid_win_rate == pytest.approx(
        0.4 * result.independent_win_rate + 0.6 * result.correlated_win_rate
    )
    assert 0.0 < result.hybrid_win_rate < 1.0
    assert len(result.leg_results) == 2
    # same-game legs are positively correlated, so joint hits are more frequent
    assert result.correlated_win_rate > result.independent_win_rate

    payout = (1 + 100 / 110) ** 2 - 1
    assert result.overall_edge == pytest.approx(result.hybrid_win_rate - 1 / (payout + 1))
    assert result.expected_value == pytest.approx(
        result.hybrid_win_rate * payout - (1 - result.hybrid_win_rate)
    )
    assert result.confidence_level <= 0.95

    for leg_result in result.leg_results:
        assert leg_result.monte_carlo_hit_rate == pytest.approx(
            leg_result.parametric_probability, abs=0.02
        )


def test_hybrid_simulate_without_correlations() -> None:
    legs = [_leg("a", expected=28.0), _leg("b", expected=27.0)]
    result = hybrid_simulate(
        legs, rng=np.random.default_rng(5), iterations=10_000, use_correlations=False
    )
    assert result.correlations_applied is False
    assert all(leg.correlation_impact == 0.0 for leg in result.leg_results)


def test_quick_analysis_same_game_boost_requires_event_ids() -> None:
    boosted = quick_analysis(
        [_leg("a", expected=24.5, event="g1"), _leg("b", expected=24.5, event="g1")]
    )
    plain = quick_analysis([_leg("a", expected=24.5), _leg("b", expected=24.5)])

    assert plain.win_probability == pytest.approx(0.25)
    assert boosted.win_probability == pytest.approx(0.25 * 1.05)
    assert "Same-game correlation detected (+5% boost)" in boosted.insights
    assert plain.insights == ()
    assert plain.recommendation == "Near fair odds - skip or reduce stake"


def test_quick_analysis_strong_legs() -> None:
    analysis = quick_analysis([_leg(str(i), expected=32.0) for i in range(4)])
    assert analysis.edge >= 0.08
    assert analysis.recommendation == "Strong value - consider betting"
    assert "4 leg(s) with strong edge (5%+)" in analysis.insights
    assert "High variance: 4+ leg parlay" in analysis.insights


def test_quick_analysis_empty() -> None:
    analysis = quick_analysis([])
    assert analysis.recommendation == "No legs provided"
    assert analysis.win_probability == 0.0

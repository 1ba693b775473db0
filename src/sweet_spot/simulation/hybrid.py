"""Hybrid parametric + Monte Carlo parlay estimates."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np

from sweet_spot.models import CandidatePick
from sweet_spot.odds_math import STANDARD_PRICE, implied_prob_from_american, parlay_decimal_odds
from sweet_spot.simulation.correlation import correlation_matrix, tolerant_cholesky
from sweet_spot.simulation.parametric import (
    ScreeningResult,
    estimate_expected_value,
    normal_cdf_array,
    prop_probability,
    screen_leg,
)

DEFAULT_ITERATIONS = 50_000
DEFAULT_PARAMETRIC_WEIGHT = 0.4
DEFAULT_MONTE_CARLO_WEIGHT = 0.6
DRAW_BATCH_SIZE = 10_000
SAME_GAME_BOOST = 1.05

Recommendation = Literal["strong_bet", "value_bet", "skip", "fade"]


@dataclass(frozen=True)
class SimLeg:
    """One priced leg as the simulator sees it."""

    leg_id: str
    prop_type: str
    player_name: str
    line: float
    side: str
    american_odds: int = STANDARD_PRICE
    expected_value: float | None = None
    team_name: str = ""
    event_id: str | None = None

    @classmethod
    def from_candidate(cls, candidate: CandidatePick) -> SimLeg:
        line = candidate.line if candidate.line is not None else 0.0
        return cls(
            leg_id=candidate.pick_id,
            prop_type=candidate.prop_type,
            player_name=candidate.player_name,
            line=line,
            side=candidate.side,
            american_odds=candidate.price,
            expected_value=candidate.projected_value or line,
            team_name=candidate.team_name,
            event_id=candidate.event_id,
        )

    def projection(self) -> float:
        if self.expected_value:
            return self.expected_value
        return estimate_expected_value(self.line, self.side, self.american_odds)

    def implied_probability(self) -> float:
        return implied_prob_from_american(self.american_odds) or 0.5


@dataclass(frozen=True)
class LegResult:
    leg_id: str
    parametric_probability: float
    monte_carlo_hit_rate: float
    hybrid_probability: float
    correlation_impact: float
    screening: ScreeningResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "leg_id": self.leg_id,
            "parametric_probability": self.parametric_probability,
            "monte_carlo_hit_rate": self.monte_carlo_hit_rate,
            "hybrid_probability": self.hybrid_probability,
            "correlation_impact": self.correlation_impact,
            "screening_verdict": self.screening.verdict,
            "screening_edge": self.screening.edge,
        }


@dataclass(frozen=True)
class HybridResult:
    independent_win_rate: float
    correlated_win_rate: float
    hybrid_win_rate: float
    expected_value: float
    variance: float
    sharpe_ratio: float
    kelly_fraction: float
    overall_edge: float
    confidence_level: float
    recommendation: Recommendation
    iterations: int
    correlations_applied: bool
    parametric_weight: float
    leg_results: tuple[LegResult, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "independent_win_rate": self.independent_win_rate,
            "correlated_win_rate": self.correlated_win_rate,
            "hybrid_win_rate": self.hybrid_win_rate,
            "expected_value": self.expected_value,
            "variance": self.variance,
            "sharpe_ratio": self.sharpe_ratio,
            "kelly_fraction": self.kelly_fraction,
            "overall_edge": self.overall_edge,
            "confidence_level": self.confidence_level,
            "recommendation": self.recommendation,
            "iterations": self.iterations,
            "correlations_applied": self.correlations_applied,
            "parametric_weight": self.parametric_weight,
            "legs": [leg.to_dict() for leg in self.leg_results],
        }


def _recommend(edge: float, confidence_level: float) -> Recommendation:
    if edge >= 0.08 and confidence_level >= 0.7:
        return "strong_bet"
    if edge >= 0.03:
        return "value_bet"
    if edge <= -0.05:
        return "fade"
    return "skip"


def _count_hits(
    probabilities: np.ndarray,
    lower: np.ndarray,
    iterations: int,
    rng: np.random.Generator,
) -> tuple[int, int, np.ndarray]:
    size = probabilities.shape[0]
    correlated_wins = 0
    independent_wins = 0
    leg_hits = np.zeros(size, dtype=np.int64)
    for start in range(0, iterations, DRAW_BATCH_SIZE):
        batch = min(DRAW_BATCH_SIZE, iterations - start)
        normals = rng.standard_normal((batch, size)) @ lower.T
        correlated = normal_cdf_array(normals) <= probabilities
        independent = rng.random((batch, size)) <= probabilities
        correlated_wins += int(correlated.all(axis=1).sum())
        independent_wins += int(independent.all(axis=1).sum())
        leg_hits += correlated.sum(axis=0)
    return correlated_wins, independent_wins, leg_hits


def hybrid_simulate(
    legs: Sequence[SimLeg],
    *,
    rng: np.random.Generator,
    iterations: int = DEFAULT_ITERATIONS,
    use_correlations: bool = True,
    parametric_weight: float = DEFAULT_PARAMETRIC_WEIGHT,
    monte_carlo_weight: float = DEFAULT_MONTE_CARLO_WEIGHT,
    correlation_overrides: Mapping[tuple[str, str, str], float] | None = None,
) -> HybridResult:
    """Estimate a parlay's win rate by blending independent and copula-correlated draws."""
    iterations = max(1, int(iterations))
    if not legs:
        return HybridResult(
            independent_win_rate=0.0,
            correlated_win_rate=0.0,
            hybrid_win_rate=0.0,
            expected_value=0.0,
            variance=0.0,
            sharpe_ratio=0.0,
            kelly_fraction=0.0,
            overall_edge=0.0,
            confidence_level=0.0,
            recommendation="skip",
            iterations=iterations,
            correlations_applied=use_correlations,
            parametric_weight=parametric_weight,
        )

    screenings = [
        screen_leg(
            leg.prop_type,
            leg.projection(),
            leg.line,
            leg.side,
            leg.implied_probability(),
            min_edge=0.0,
        )
        for leg in legs
    ]
    probabilities = np.array([screening.probability for screening in screenings])

    if use_correlations and len(legs) > 1:
        lower = tolerant_cholesky(correlation_matrix(legs, correlation_overrides))
    else:
        lower = np.eye(len(legs))

    correlated_wins, independent_wins, leg_hits = _count_hits(
        probabilities, lower, iterations, rng
    )
    correlated_rate = correlated_wins / iterations
    independent_rate = independent_wins / iterations
    hybrid_rate = parametric_weight * independent_rate + monte_carlo_weight * correlated_rate

    leg_results = []
    for index, (leg, screening) in enumerate(zip(legs, screenings, strict=True)):
        hit_rate = float(leg_hits[index]) / iterations
        leg_results.append(
            LegResult(
                leg_id=leg.leg_id,
                parametric_probability=screening.probability,
                monte_carlo_hit_rate=hit_rate,
                hybrid_probability=(
                    parametric_weight * screening.probability + monte_carlo_weight * hit_rate
                ),
                correlation_impact=hit_rate - screening.probability if use_correlations else 0.0,
                screening=screening,
            )
        )

    payout = parlay_decimal_odds(leg.american_odds for leg in legs) - 1.0
    expected_value = hybrid_rate * payout - (1.0 - hybrid_rate)
    variance = hybrid_rate * (1.0 - hybrid_rate) * payout**2
    std_dev = math.sqrt(variance)
    sharpe = expected_value / std_dev if std_dev > 0 else 0.0
    kelly = max(0.0, (hybrid_rate * payout - (1.0 - hybrid_rate)) / payout) if payout > 0 else 0.0
    edge = hybrid_rate - 1.0 / (payout + 1.0)
    confidence_level = min(0.95, 0.5 + iterations / 100_000 + 1.0 / (1.0 + variance))

    return HybridResult(
        independent_win_rate=independent_rate,
        correlated_win_rate=correlated_rate,
        hybrid_win_rate=hybrid_rate,
        expected_value=expected_value,
        variance=variance,
        sharpe_ratio=sharpe,
        kelly_fraction=kelly,
        overall_edge=edge,
        confidence_level=confidence_level,
        recommendation=_recommend(edge, confidence_level),
        iterations=iterations,
        correlations_applied=use_correlations,
        parametric_weight=parametric_weight,
        leg_results=tuple(leg_results),
    )


@dataclass(frozen=True)
class QuickAnalysis:
    win_probability: float
    edge: float
    recommendation: str
    insights: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "win_probability": self.win_probability,
            "edge": self.edge,
            "recommendation": self.recommendation,
            "insights": list(self.insights),
        }


def quick_analysis(legs: Sequence[SimLeg]) -> QuickAnalysis:
    """Closed-form parlay read with no sampling."""
    if not legs:
        return QuickAnalysis(0.0, 0.0, "No legs provided", ())

    combined = 1.0
    strong_legs = 0
    weak_legs = 0
    for leg in legs:
        result = prop_probability(leg.prop_type, leg.projection(), leg.line, leg.side)
        combined *= result.probability
        leg_edge = result.probability - leg.implied_probability()
        if leg_edge >= 0.05:
            strong_legs += 1
        elif leg_edge <= -0.03:
            weak_legs += 1

    insights: list[str] = []
    event_ids = [leg.event_id for leg in legs if leg.event_id]
    if len(event_ids) != len(set(event_ids)):
        combined *= SAME_GAME_BOOST
        insights.append("Same-game correlation detected (+5% boost)")

    edge = combined - 1.0 / parlay_decimal_odds(leg.american_odds for leg in legs)
    if strong_legs:
        insights.append(f"{strong_legs} leg(s) with strong edge (5%+)")
    if weak_legs:
        insights.append(f"{weak_legs} leg(s) with negative edge")
    if len(legs) >= 4:
        insights.append("High variance: 4+ leg parlay")

    if edge >= 0.08:
        recommendation = "Strong value - consider betting"
    elif edge >= 0.03:
        recommendation = "Slight edge - proceed with caution"
    elif edge <= -0.05:
        recommendation = "Negative edge - consider fading"
    else:
        recommendation = "Near fair odds - skip or reduce stake"
    return QuickAnalysis(
        win_probability=combined,
        edge=edge,
        recommendation=recommendation,
        insights=tuple(insights),
    )

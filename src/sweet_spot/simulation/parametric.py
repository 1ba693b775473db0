"""Closed-form prop probabilities and single-leg screening."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

import numpy as np

from sweet_spot.normalize import normalize_prop, stat_type_for_prop
from sweet_spot.odds_math import implied_prob_from_american

PROBABILITY_FLOOR = 0.01
PROBABILITY_CEILING = 0.99
STANDARD_IMPLIED = 0.524
POISSON_MEAN_CEILING = 10.0

STD_DEV_MULTIPLIERS: dict[str, float] = {
    "points": 0.35,
    "rebounds": 0.40,
    "assists": 0.45,
    "threes": 0.55,
    "blocks": 0.60,
    "steals": 0.60,
    "turnovers": 0.50,
    "combo": 0.30,
}
DEFAULT_STD_DEV_MULTIPLIER = 0.40

# Discrete low-count stats are always modelled as Poisson.
POISSON_STATS = frozenset({"threes", "blocks", "steals", "turnovers"})

Model = Literal["poisson", "normal"]
Verdict = Literal["strong_pick", "consider", "avoid", "neutral"]


@dataclass(frozen=True)
class PropProbability:
    probability: float
    confidence: float
    model: Model
    expected_value: float
    edge: float


@dataclass(frozen=True)
class ScreeningResult:
    passed: bool
    probability: float
    edge: float
    confidence: float
    model: Model
    verdict: Verdict


def stat_key(prop_type: str | None) -> str:
    """Stat bucket used for dispersion lookups; multi-stat props map to `combo`."""
    prop = normalize_prop(prop_type)
    if "turnover" in prop:
        return "turnovers"
    parts = sum(1 for fragment in ("point", "rebound", "assist") if fragment in prop)
    if parts > 1 or prop in {"pra", "pr", "pa", "ra"}:
        return "combo"
    return stat_type_for_prop(prop_type)


def poisson_cdf(lam: float, k: float) -> float:
    """P(X <= k) for X ~ Poisson(lam)."""
    if lam <= 0:
        return 1.0 if k >= 0 else 0.0
    upper = math.floor(k)
    if upper < 0:
        return 0.0
    term = math.exp(-lam)
    total = term
    for i in range(1, upper + 1):
        term *= lam / i
        total += term
    return min(1.0, total)


def poisson_over_under(expected_value: float, line: float, side: str) -> float:
    """Hit probability for a Poisson stat; whole-number lines push on equality."""
    half_point = line % 1 != 0
    if side == "over":
        return 1.0 - poisson_cdf(expected_value, math.floor(line) if half_point else line)
    return poisson_cdf(expected_value, math.floor(line) if half_point else line - 1)


def normal_cdf(z: float) -> float:
    return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


def normal_cdf_array(z: np.ndarray) -> np.ndarray:
    """Vectorized standard normal CDF (Abramowitz-Stegun 7.1.26)."""
    x = np.abs(z) / math.sqrt(2.0)
    t = 1.0 / (1.0 + 0.3275911 * x)
    poly = ((((1.061405429 * t - 1.453152027) * t + 1.421413741) * t - 0.284496736) * t
            + 0.254829592) * t
    erf = 1.0 - poly * np.exp(-x * x)
    return 0.5 * (1.0 + np.sign(z) * erf)


def normal_over_under(expected_value: float, std_dev: float, line: float, side: str) -> float:
    if std_dev <= 0:
        hit_over = expected_value > line
        return float(hit_over if side == "over" else expected_value < line)
    z = (line - expected_value) / std_dev
    return 1.0 - normal_cdf(z) if side == "over" else normal_cdf(z)


def distribution_for(prop_type: str | None, expected_value: float) -> Model:
    if stat_key(prop_type) in POISSON_STATS or expected_value < POISSON_MEAN_CEILING:
        return "poisson"
    return "normal"


def prop_probability(
    prop_type: str | None,
    expected_value: float,
    line: float,
    side: str,
    *,
    std_dev: float | None = None,
) -> PropProbability:
    """Closed-form hit probability for one prop, clamped to [0.01, 0.99]."""
    model = distribution_for(prop_type, expected_value)
    if model == "poisson":
        raw = poisson_over_under(expected_value, line, side)
    else:
        multiplier = STD_DEV_MULTIPLIERS.get(stat_key(prop_type), DEFAULT_STD_DEV_MULTIPLIER)
        spread = std_dev if std_dev else expected_value * multiplier
        raw = normal_over_under(expected_value, spread, line, side)
    edge = raw - STANDARD_IMPLIED
    confidence = min(0.95, max(0.3, 0.5 + abs(edge) * 2.0))
    return PropProbability(
        probability=max(PROBABILITY_FLOOR, min(PROBABILITY_CEILING, raw)),
        confidence=confidence,
        model=model,
        expected_value=expected_value,
        edge=edge,
    )


def estimate_expected_value(line: float, side: str, price: int | None) -> float:
    """Projection implied by a price when none is supplied.

    A juiced side (implied > 52%) suggests the line sits on the far side of the mean.
    """
    implied = implied_prob_from_american(price) or STANDARD_IMPLIED
    juiced = implied > 0.52
    if side == "over":
        return line * (0.95 if juiced else 1.05)
    return line * (1.05 if juiced else 0.95)


def screen_leg(
    prop_type: str | None,
    expected_value: float,
    line: float,
    side: str,
    implied_probability: float,
    *,
    min_edge: float = 0.03,
) -> ScreeningResult:
    result = prop_probability(prop_type, expected_value, line, side)
    edge = result.probability - implied_probability
    verdict: Verdict
    if edge >= 0.08 and result.confidence >= 0.6:
        verdict = "strong_pick"
    elif edge >= min_edge and result.confidence >= 0.5:
        verdict = "consider"
    elif edge <= -0.05:
        verdict = "avoid"
    else:
        verdict = "neutral"
    return ScreeningResult(
        passed=edge >= min_edge,
        probability=result.probability,
        edge=edge,
        confidence=result.confidence,
        model=result.model,
        verdict=verdict,
    )

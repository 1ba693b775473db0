"""Pairwise leg correlations and a tolerant Cholesky factor."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Literal, Protocol

import numpy as np

from sweet_spot.normalize import player_key, team_abbrev
from sweet_spot.simulation.parametric import stat_key

Relation = Literal["same_player", "same_game", "same_team", "cross_game"]

# Same-player stat pairs with measured co-movement.
STAT_PAIR_CORRELATIONS: dict[tuple[str, str], float] = {
    ("assists", "points"): 0.35,
    ("points", "rebounds"): 0.25,
    ("assists", "rebounds"): 0.15,
}

RELATION_DEFAULTS: dict[Relation, float] = {
    "same_player": 0.30,
    "same_game": 0.20,
    "same_team": 0.15,
    "cross_game": 0.05,
}

DIAGONAL_FLOOR = 0.001


class CorrelatedLeg(Protocol):
    prop_type: str
    player_name: str
    team_name: str
    event_id: str | None


def relation_between(first: CorrelatedLeg, second: CorrelatedLeg) -> Relation:
    first_player = player_key(first.player_name)
    if first_player and first_player == player_key(second.player_name):
        return "same_player"
    if first.event_id and first.event_id == second.event_id:
        return "same_game"
    first_team = team_abbrev(first.team_name)
    if first_team and first_team == team_abbrev(second.team_name):
        return "same_team"
    return "cross_game"


def lookup_correlation(
    first_prop: str,
    second_prop: str,
    relation: Relation,
    overrides: Mapping[tuple[str, str, str], float] | None = None,
) -> float:
    """Correlation for a stat pair under `relation`.

    `overrides` is keyed by (stat, stat, relation) with the stats in sorted order.
    """
    pair = tuple(sorted((stat_key(first_prop), stat_key(second_prop))))
    if overrides:
        measured = overrides.get((pair[0], pair[1], relation))
        if measured is not None:
            return float(measured)
    if relation == "same_player" and pair in STAT_PAIR_CORRELATIONS:
        return STAT_PAIR_CORRELATIONS[pair]  # type: ignore[index]
    return RELATION_DEFAULTS[relation]


def correlation_matrix(
    legs: Sequence[CorrelatedLeg],
    overrides: Mapping[tuple[str, str, str], float] | None = None,
) -> np.ndarray:
    size = len(legs)
    matrix = np.eye(size, dtype=np.float64)
    for i in range(size):
        for j in range(i + 1, size):
            value = lookup_correlation(
                legs[i].prop_type,
                legs[j].prop_type,
                relation_between(legs[i], legs[j]),
                overrides,
            )
            matrix[i, j] = value
            matrix[j, i] = value
    return matrix


def tolerant_cholesky(matrix: np.ndarray) -> np.ndarray:
    """Lower-triangular L with L @ L.T ~= matrix, even when matrix is not positive definite.

    Non-positive pivots are replaced by DIAGONAL_FLOOR instead of failing.
    """
    try:
        return np.linalg.cholesky(matrix)
    except np.linalg.LinAlgError:
        pass
    size = matrix.shape[0]
    lower = np.zeros((size, size), dtype=np.float64)
    for i in range(size):
        for j in range(i + 1):
            partial = float(np.dot(lower[i, :j], lower[j, :j]))
            if i == j:
                pivot = matrix[i, i] - partial
                lower[i, j] = np.sqrt(pivot) if pivot > 0 else DIAGONAL_FLOOR
            else:
                lower[i, j] = (matrix[i, j] - partial) / lower[j, j] if lower[j, j] else 0.0
    return lower

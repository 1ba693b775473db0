"""Candidate combination generation for the viability simulator."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from sweet_spot.models import CandidatePick
from sweet_spot.normalize import player_key, team_abbrev

DEFAULT_POOL_SIZE = 15
DEFAULT_MAX_PER_TEAM = 2
DEFAULT_SHUFFLE_ATTEMPTS = 3


def _confidence(candidate: CandidatePick) -> float:
    return candidate.confidence_score if candidate.confidence_score is not None else 0.0


def top_pool(
    candidates: Sequence[CandidatePick], size: int = DEFAULT_POOL_SIZE
) -> list[CandidatePick]:
    """Highest-confidence candidates; ties keep input order."""
    ranked = sorted(candidates, key=lambda candidate: -_confidence(candidate))
    return ranked[: max(0, size)]


def generate_combinations(
    candidates: Sequence[CandidatePick],
    leg_count: int,
    *,
    rng: np.random.Generator,
    max_combinations: int = 100,
    pool_size: int = DEFAULT_POOL_SIZE,
    max_per_team: int = DEFAULT_MAX_PER_TEAM,
    shuffle_attempts: int = DEFAULT_SHUFFLE_ATTEMPTS,
) -> list[tuple[CandidatePick, ...]]:
    """Depth-first combinations over the top pool, topped up with shuffled greedy fills.

    Every combination has distinct players and at most `max_per_team` legs per team.
    Shuffled fills are only attempted when the search produced fewer than half of
    `max_combinations`; duplicates are dropped.
    """
    if leg_count <= 0 or max_combinations <= 0:
        return []
    pool = top_pool(candidates, pool_size)
    players = [player_key(candidate.player_name) for candidate in pool]
    teams = [team_abbrev(candidate.team_name) for candidate in pool]

    found: list[tuple[int, ...]] = []
    seen: set[frozenset[int]] = set()

    def fits(index: int, chosen: Sequence[int]) -> bool:
        if any(players[other] == players[index] for other in chosen):
            return False
        same_team = sum(1 for other in chosen if teams[other] == teams[index])
        return same_team < max_per_team

    def record(chosen: Sequence[int]) -> None:
        key = frozenset(chosen)
        if key not in seen:
            seen.add(key)
            found.append(tuple(chosen))

    def search(start: int, chosen: list[int]) -> None:
        if len(chosen) == leg_count:
            record(chosen)
            return
        for index in range(start, len(pool)):
            if len(found) >= max_combinations:
                return
            if not fits(index, chosen):
                continue
            chosen.append(index)
            search(index + 1, chosen)
            chosen.pop()

    search(0, [])

    if len(found) < max_combinations / 2 and len(pool) >= leg_count:
        for _ in range(shuffle_attempts):
            if len(found) >= max_combinations:
                break
            chosen: list[int] = []
            for index in rng.permutation(len(pool)):
                if len(chosen) >= leg_count:
                    break
                if fits(int(index), chosen):
                    chosen.append(int(index))
            if len(chosen) == leg_count:
                record(chosen)

    return [tuple(pool[index] for index in combo) for combo in found]

"""Deterministic formula-first leg selection for validated candidates."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from sweet_spot.models import CandidatePick
from sweet_spot.rules import MAX_LEGS_PER_TEAM, PROVEN_FORMULA, TARGET_LEG_COUNT, FormulaSlot

SELECTION_REASON_PLAYER = "player_already_selected"
SELECTION_REASON_TEAM_CAP = "team_cap"
SELECTION_REASON_TARGET = "target_reached"
SELECTION_REASON_NOT_SELECTED = "not_selected"

Phase = Literal["formula", "fallback"]


@dataclass(frozen=True)
class Contender:
    """A candidate that cleared every filter, with its resolved keys and score."""

    index: int
    candidate: CandidatePick
    player_key: str
    team: str
    score: float

    @property
    def category(self) -> str:
        return (self.candidate.category or "").strip().upper()

    @property
    def side(self) -> str:
        return self.candidate.side


@dataclass(frozen=True)
class Pick:
    contender: Contender
    phase: Phase
    slot_category: str | None = None


@dataclass(frozen=True)
class SelectionResult:
    picks: tuple[Pick, ...]
    excluded: dict[int, str]

    @property
    def formula_count(self) -> int:
        return sum(1 for pick in self.picks if pick.phase == "formula")

    @property
    def fallback_count(self) -> int:
        return sum(1 for pick in self.picks if pick.phase == "fallback")


def _ranked(contenders: Sequence[Contender]) -> list[Contender]:
    # sorted() is stable, so equal scores keep input order.
    return sorted(contenders, key=lambda contender: -contender.score)


class _Ledger:
    def __init__(self, *, target: int, max_per_team: int) -> None:
        self.target = max(0, int(target))
        self.max_per_team = max(1, int(max_per_team))
        self.picks: list[Pick] = []
        self.players: set[str] = set()
        self.team_counts: dict[str, int] = {}
        self.taken: set[int] = set()

    @property
    def full(self) -> bool:
        return len(self.picks) >= self.target

    def blocker(self, contender: Contender) -> str:
        if contender.player_key in self.players:
            return SELECTION_REASON_PLAYER
        if self.team_counts.get(contender.team, 0) >= self.max_per_team:
            return SELECTION_REASON_TEAM_CAP
        if self.full:
            return SELECTION_REASON_TARGET
        return ""

    def take(self, contender: Contender, phase: Phase, slot_category: str | None) -> None:
        self.picks.append(Pick(contender=contender, phase=phase, slot_category=slot_category))
        self.players.add(contender.player_key)
        self.team_counts[contender.team] = self.team_counts.get(contender.team, 0) + 1
        self.taken.add(contender.index)


def select_legs(
    contenders: Sequence[Contender],
    *,
    formula: Sequence[FormulaSlot] = PROVEN_FORMULA,
    target: int = TARGET_LEG_COUNT,
    max_per_team: int = MAX_LEGS_PER_TEAM,
) -> SelectionResult:
    """Fill formula slots in order, then top up greedily by score.

    The fallback pass only enforces player and team uniqueness; it does not
    re-check category or side diversity.
    """
    ledger = _Ledger(target=target, max_per_team=max_per_team)

    for slot in formula:
        if ledger.full:
            break
        slot_category = slot.category.strip().upper()
        matching = [
            contender
            for contender in contenders
            if contender.category == slot_category
            and contender.side == slot.side
            and contender.index not in ledger.taken
        ]
        taken_for_slot = 0
        for contender in _ranked(matching):
            if taken_for_slot >= slot.count or ledger.full:
                break
            if ledger.blocker(contender):
                continue
            ledger.take(contender, "formula", slot_category)
            taken_for_slot += 1

    if not ledger.full:
        remaining = [c for c in contenders if c.index not in ledger.taken]
        for contender in _ranked(remaining):
            if ledger.full:
                break
            if ledger.blocker(contender):
                continue
            ledger.take(contender, "fallback", None)

    excluded: dict[int, str] = {}
    for contender in contenders:
        if contender.index in ledger.taken:
            continue
        excluded[contender.index] = ledger.blocker(contender) or SELECTION_REASON_NOT_SELECTED
    return SelectionResult(picks=tuple(ledger.picks), excluded=excluded)

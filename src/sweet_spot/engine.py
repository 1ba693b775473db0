"""Candidate selection engine: context resolution, filtering, scoring and selection."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from sweet_spot.filters import (
    PatternCheck,
    check_archetype_alignment,
    check_h2h,
    check_pattern,
)
from sweet_spot.models import CandidatePick, FrozenSlate, GameEnvironment, H2HRecord, H2HView
from sweet_spot.normalize import player_key, stat_type_for_prop, team_abbrev
from sweet_spot.presets import WeightPreset
from sweet_spot.rules import (
    MAX_LEGS_PER_TEAM,
    MISSING_CONTEXT_PENALTY,
    PROVEN_FORMULA,
    TARGET_LEG_COUNT,
    FormulaSlot,
    category_is_proven,
    get_pattern_rule,
)
from sweet_spot.scoring import ScoreBreakdown, score_candidate
from sweet_spot.selection import SELECTION_REASON_NOT_SELECTED, Contender, Pick, select_legs

logger = logging.getLogger(__name__)

UNKNOWN_TEAM = "UNK"

Stage = Literal["invalid", "injury", "archetype", "h2h", "pattern", "selection"]


def _split_key(key: str, parts: int) -> list[str] | None:
    """Split a `|`-joined key, or an `_`-joined one whose last piece may hold underscores."""
    text = str(key)
    if "|" in text:
        pieces = [piece.strip() for piece in text.split("|")]
    else:
        pieces = [piece.strip() for piece in text.split("_", parts - 1)]
    if len(pieces) != parts or not all(pieces):
        return None
    return pieces


@dataclass(frozen=True)
class SlateContext:
    """Normalized lookup indices over a slate's flattened context maps."""

    environments: dict[str, GameEnvironment] = field(default_factory=dict)
    h2h: dict[tuple[str, str, str], H2HRecord] = field(default_factory=dict)
    h2h_by_player_stat: dict[tuple[str, str], tuple[H2HRecord, ...]] = field(
        default_factory=dict
    )
    defense_ranks: dict[tuple[str, str], int] = field(default_factory=dict)

    @classmethod
    def from_slate(cls, slate: FrozenSlate) -> SlateContext:
        environments: dict[str, GameEnvironment] = {}
        for key in sorted(slate.game_environment):
            team = team_abbrev(key)
            if team and team not in environments:
                environments[team] = slate.game_environment[key]

        h2h: dict[tuple[str, str, str], H2HRecord] = {}
        by_player_stat: dict[tuple[str, str], list[H2HRecord]] = {}
        for key in sorted(slate.h2h):
            pieces = _split_key(key, 3)
            if pieces is None:
                continue
            record = slate.h2h[key]
            index = (
                player_key(pieces[0]),
                team_abbrev(pieces[1]),
                stat_type_for_prop(pieces[2]),
            )
            if index not in h2h:
                h2h[index] = record
            by_player_stat.setdefault((index[0], index[2]), []).append(record)

        defense: dict[tuple[str, str], int] = {}
        for key in sorted(slate.defense_ranks):
            pieces = _split_key(key, 2)
            if pieces is None:
                continue
            index = (team_abbrev(pieces[0]), stat_type_for_prop(pieces[1]))
            defense.setdefault(index, slate.defense_ranks[key])

        return cls(
            environments=environments,
            h2h=h2h,
            h2h_by_player_stat={key: tuple(value) for key, value in by_player_stat.items()},
            defense_ranks=defense,
        )

    def environment_for(self, team: str) -> GameEnvironment | None:
        return self.environments.get(team)

    def h2h_for(self, player: str, opponent: str, stat_type: str) -> H2HRecord | None:
        if opponent:
            return self.h2h.get((player, opponent, stat_type))
        records = self.h2h_by_player_stat.get((player, stat_type))
        return records[0] if records else None

    def defense_rank_for(self, opponent: str, stat_type: str) -> int | None:
        if not opponent:
            return None
        rank = self.defense_ranks.get((opponent, stat_type))
        if rank is None or rank < 1:
            return None
        return rank


@dataclass(frozen=True)
class TraceRow:
    """Decision record for one candidate."""

    index: int
    pick_id: str
    player_name: str
    team: str
    prop_type: str
    line: float | None
    side: str
    category: str | None
    status: Literal["selected", "rejected"]
    stage: Stage
    reason: str
    archetype_aligned: bool | None = None
    archetype_reason: str = ""
    h2h_passed: bool | None = None
    h2h_reason: str = ""
    pattern_passed: bool | None = None
    pattern_score: float | None = None
    pattern_reason: str = ""
    opponent: str = ""
    defense_rank: int | None = None
    reliability: float | None = None
    confidence: float | None = None
    breakdown: ScoreBreakdown | None = None
    phase: str | None = None
    slot_category: str | None = None
    category_proven: bool | None = None

    @property
    def score(self) -> float | None:
        return self.breakdown.total if self.breakdown is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "pick_id": self.pick_id,
            "player_name": self.player_name,
            "team": self.team,
            "prop_type": self.prop_type,
            "line": self.line,
            "side": self.side,
            "category": self.category,
            "status": self.status,
            "stage": self.stage,
            "reason": self.reason,
            "archetype_aligned": self.archetype_aligned,
            "archetype_reason": self.archetype_reason,
            "h2h_passed": self.h2h_passed,
            "h2h_reason": self.h2h_reason,
            "pattern_passed": self.pattern_passed,
            "pattern_score": self.pattern_score,
            "pattern_reason": self.pattern_reason,
            "opponent": self.opponent,
            "defense_rank": self.defense_rank,
            "reliability": self.reliability,
            "confidence": self.confidence,
            "score": self.score,
            "breakdown": self.breakdown.to_dict() if self.breakdown is not None else None,
            "phase": self.phase,
            "slot_category": self.slot_category,
            "category_proven": self.category_proven,
        }


@dataclass(frozen=True)
class SelectedLeg:
    candidate: CandidatePick
    team: str
    score: float
    pattern_score: float
    breakdown: ScoreBreakdown
    h2h: H2HView | None
    environment: GameEnvironment | None
    defense_rank: int | None
    phase: str
    slot_category: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate": self.candidate.to_dict(),
            "team": self.team,
            "score": self.score,
            "pattern_score": self.pattern_score,
            "breakdown": self.breakdown.to_dict(),
            "h2h": self.h2h.to_dict() if self.h2h is not None else None,
            "environment": self.environment.to_dict() if self.environment is not None else None,
            "defense_rank": self.defense_rank,
            "phase": self.phase,
            "slot_category": self.slot_category,
        }


@dataclass(frozen=True)
class BuilderOutput:
    legs: tuple[SelectedLeg, ...]
    traces: tuple[TraceRow, ...]
    diagnostics: dict[str, Any]
    active_preset: str
    slate_date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "slate_date": self.slate_date,
            "active_preset": self.active_preset,
            "legs": [leg.to_dict() for leg in self.legs],
            "traces": [row.to_dict() for row in self.traces],
            "diagnostics": self.diagnostics,
            "summary": summarize_legs(self.legs),
        }


@dataclass(frozen=True)
class _Resolved:
    team: str
    opponent: str
    stat_type: str
    environment: GameEnvironment | None
    h2h: H2HView | None
    defense_rank: int | None


def _resolve(candidate: CandidatePick, context: SlateContext) -> _Resolved:
    team = team_abbrev(candidate.team_name) or UNKNOWN_TEAM
    environment = context.environment_for(team)
    opponent = team_abbrev(environment.opponent) if environment is not None else ""
    stat_type = stat_type_for_prop(candidate.prop_type)
    record = context.h2h_for(player_key(candidate.player_name), opponent, stat_type)
    if not opponent and record is not None:
        opponent = team_abbrev(record.opponent)
    return _Resolved(
        team=team,
        opponent=opponent,
        stat_type=stat_type,
        environment=environment,
        h2h=record.for_side(candidate.side) if record is not None else None,
        defense_rank=context.defense_rank_for(opponent, stat_type),
    )


def _invalid_reason(candidate: CandidatePick) -> str:
    if not candidate.player_name:
        return "missing player_name"
    if candidate.line is None:
        return "missing numeric line"
    if candidate.side not in {"over", "under"}:
        return f"invalid side {candidate.side!r}"
    return ""


def _selection_reason(pick: Pick | None, excluded_reason: str | None) -> str:
    if pick is None:
        return excluded_reason or SELECTION_REASON_NOT_SELECTED
    if pick.slot_category:
        return f"{pick.phase}:{pick.slot_category}"
    return pick.phase


def _is_out(candidate: CandidatePick) -> bool:
    return "out" in (candidate.injury_status or "").lower()


def _category_proven(candidate: CandidatePick) -> bool | None:
    if not candidate.category or candidate.category_hit_rate is None:
        return None
    return category_is_proven(
        sample_size=candidate.category_sample_size, hit_rate=candidate.category_hit_rate
    )


def build_leg_set(
    slate: FrozenSlate,
    preset: WeightPreset,
    *,
    missing_context_penalty: float = MISSING_CONTEXT_PENALTY,
    formula: Sequence[FormulaSlot] = PROVEN_FORMULA,
    target: int = TARGET_LEG_COUNT,
    max_per_team: int = MAX_LEGS_PER_TEAM,
) -> BuilderOutput:
    """Run the full filter, score and select pipeline over one slate.

    Never raises on sparse input: unusable candidates are rejected with a trace
    row and every candidate yields exactly one row, in input order.
    """
    context = SlateContext.from_slate(slate)
    rows: dict[int, TraceRow] = {}
    contenders: list[Contender] = []
    details: dict[int, tuple[_Resolved, PatternCheck, ScoreBreakdown, str, str]] = {}
    archetype_blocked: list[str] = []
    h2h_blocked: list[str] = []
    pattern_blocked: list[str] = []
    invalid = 0
    injured = 0

    for index, candidate in enumerate(slate.candidates):
        base = {
            "index": index,
            "pick_id": candidate.pick_id,
            "player_name": candidate.player_name,
            "prop_type": candidate.prop_type,
            "line": candidate.line,
            "side": candidate.side,
            "category": candidate.category,
        }
        invalid_reason = _invalid_reason(candidate)
        if invalid_reason:
            invalid += 1
            rows[index] = TraceRow(
                team=team_abbrev(candidate.team_name) or UNKNOWN_TEAM,
                status="rejected",
                stage="invalid",
                reason=invalid_reason,
                **base,
            )
            logger.debug("invalid candidate %s: %s", candidate.pick_id, invalid_reason)
            continue

        resolved = _resolve(candidate, context)
        base["team"] = resolved.team
        base["opponent"] = resolved.opponent
        base["defense_rank"] = resolved.defense_rank
        base["reliability"] = candidate.l10_hit_rate
        base["confidence"] = candidate.confidence_score

        if _is_out(candidate):
            injured += 1
            rows[index] = TraceRow(
                status="rejected",
                stage="injury",
                reason=f"injury status {candidate.injury_status}",
                **base,
            )
            continue

        aligned, archetype_reason = check_archetype_alignment(candidate)
        if not aligned:
            archetype_blocked.append(f"{candidate.player_name}: {archetype_reason}")
            rows[index] = TraceRow(
                status="rejected",
                stage="archetype",
                reason=archetype_reason,
                archetype_aligned=False,
                archetype_reason=archetype_reason,
                **base,
            )
            logger.debug("archetype blocked %s: %s", candidate.pick_id, archetype_reason)
            continue

        line = float(candidate.line)  # type: ignore[arg-type]
        h2h_passed, h2h_reason = check_h2h(resolved.h2h, line=line, side=candidate.side)
        if not h2h_passed:
            h2h_blocked.append(f"{candidate.player_name}: {h2h_reason}")
            rows[index] = TraceRow(
                status="rejected",
                stage="h2h",
                reason=h2h_reason,
                archetype_aligned=True,
                archetype_reason=archetype_reason,
                h2h_passed=False,
                h2h_reason=h2h_reason,
                **base,
            )
            logger.debug("h2h blocked %s: %s", candidate.pick_id, h2h_reason)
            continue

        check = check_pattern(
            get_pattern_rule(candidate.category),
            line=line,
            side=candidate.side,
            environment=resolved.environment,
            defense_rank=resolved.defense_rank,
            missing_context_penalty=missing_context_penalty,
        )
        if not check.passes:
            pattern_blocked.append(f"{candidate.player_name}: {check.reason}")
            rows[index] = TraceRow(
                status="rejected",
                stage="pattern",
                reason=check.reason,
                archetype_aligned=True,
                archetype_reason=archetype_reason,
                h2h_passed=True,
                h2h_reason=h2h_reason,
                pattern_passed=False,
                pattern_score=check.score,
                pattern_reason=check.reason,
                **base,
            )
            logger.debug("pattern blocked %s: %s", candidate.pick_id, check.reason)
            continue

        breakdown = score_candidate(
            pattern_score=check.score,
            reliability=candidate.l10_hit_rate,
            confidence=candidate.confidence_score,
            sample_size=candidate.category_sample_size,
            preset=preset,
        )
        contenders.append(
            Contender(
                index=index,
                candidate=candidate,
                player_key=player_key(candidate.player_name),
                team=resolved.team,
                score=breakdown.total,
            )
        )
        details[index] = (resolved, check, breakdown, archetype_reason, h2h_reason)

    selection = select_legs(
        contenders, formula=formula, target=target, max_per_team=max_per_team
    )

    picked = {pick.contender.index: pick for pick in selection.picks}
    for contender in contenders:
        resolved, check, breakdown, archetype_reason, h2h_reason = details[contender.index]
        pick = picked.get(contender.index)
        candidate = contender.candidate
        rows[contender.index] = TraceRow(
            index=contender.index,
            pick_id=candidate.pick_id,
            player_name=candidate.player_name,
            team=resolved.team,
            prop_type=candidate.prop_type,
            line=candidate.line,
            side=candidate.side,
            category=candidate.category,
            status="selected" if pick is not None else "rejected",
            stage="selection",
            reason=_selection_reason(pick, selection.excluded.get(contender.index)),
            archetype_aligned=True,
            archetype_reason=archetype_reason,
            h2h_passed=True,
            h2h_reason=h2h_reason,
            pattern_passed=True,
            pattern_score=check.score,
            pattern_reason=check.reason,
            opponent=resolved.opponent,
            defense_rank=resolved.defense_rank,
            reliability=breakdown.reliability_input,
            confidence=breakdown.confidence_input,
            breakdown=breakdown,
            phase=pick.phase if pick is not None else None,
            slot_category=pick.slot_category if pick is not None else None,
            category_proven=_category_proven(candidate),
        )

    legs = []
    for pick in selection.picks:
        resolved, check, breakdown, _, _ = details[pick.contender.index]
        legs.append(
            SelectedLeg(
                candidate=pick.contender.candidate,
                team=resolved.team,
                score=breakdown.total,
                pattern_score=check.score,
                breakdown=breakdown,
                h2h=resolved.h2h,
                environment=resolved.environment,
                defense_rank=resolved.defense_rank,
                phase=pick.phase,
                slot_category=pick.slot_category,
            )
        )

    diagnostics: dict[str, Any] = {
        "total_candidates": len(slate.candidates),
        "invalid": invalid,
        "injury": injured,
        "archetype_blocked": archetype_blocked,
        "h2h_blocked": h2h_blocked,
        "pattern_blocked": pattern_blocked,
        "passed_validation": len(contenders),
        "formula_selected": selection.formula_count,
        "fallback_selected": selection.fallback_count,
        "selected_count": len(legs),
    }
    logger.debug(
        "selected %d/%d legs (formula=%d fallback=%d) preset=%s",
        len(legs),
        target,
        selection.formula_count,
        selection.fallback_count,
        preset.preset_id,
    )
    return BuilderOutput(
        legs=tuple(legs),
        traces=tuple(rows[index] for index in sorted(rows)),
        diagnostics=diagnostics,
        active_preset=preset.preset_id,
        slate_date=slate.slate_date,
    )


def _mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def summarize_legs(legs: Sequence[SelectedLeg]) -> dict[str, Any]:
    """Aggregate stats over a selected leg set."""
    confidences = [
        leg.candidate.confidence_score
        for leg in legs
        if leg.candidate.confidence_score is not None
    ]
    edges = [leg.candidate.edge for leg in legs if leg.candidate.edge is not None]
    reliabilities = [
        leg.candidate.l10_hit_rate for leg in legs if leg.candidate.l10_hit_rate is not None
    ]
    return {
        "leg_count": len(legs),
        "avg_confidence": _mean(confidences),
        "avg_edge": _mean(edges),
        "avg_reliability": _mean(reliabilities),
        "unique_teams": len({leg.team for leg in legs}),
        "proven_legs": sum(1 for leg in legs if _category_proven(leg.candidate)),
        "prop_types": sorted({leg.candidate.prop_type for leg in legs}),
        "categories": sorted({leg.candidate.category or "" for leg in legs} - {""}),
    }

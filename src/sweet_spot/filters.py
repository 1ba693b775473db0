"""Candidate filters: archetype alignment, head-to-head history and pattern rules."""

from __future__ import annotations

from dataclasses import dataclass

from sweet_spot.models import CandidatePick, GameEnvironment, H2HView
from sweet_spot.normalize import (
    known_stat_type,
    normalize_pace,
    normalize_prop,
    normalize_script,
)
from sweet_spot.rules import (
    ARCHETYPE_PROP_BLOCKED,
    CATEGORY_PROP_OVERRIDES,
    MISSING_CONTEXT_PENALTY,
    PatternRule,
)

H2H_MIN_GAMES = 2
H2H_BLOCK_GAMES = 3
H2H_MIN_HIT_RATE = 0.40
H2H_OVER_AVG_FLOOR = 0.75
H2H_UNDER_AVG_CEILING = 1.25

UNDER_GRIND_THRESHOLD = 0.65
OVER_POINTS_GRIND_THRESHOLD = 0.75

_UNKNOWN_ARCHETYPES = {"", "UNKNOWN", "NONE", "N/A"}


@dataclass(frozen=True)
class PatternCheck:
    """Outcome of evaluating one candidate against its category rule."""

    passes: bool
    score: float
    reason: str


def check_archetype_alignment(candidate: CandidatePick) -> tuple[bool, str]:
    """Reject props an archetype is known to miss, unless a category override applies."""
    archetype = (candidate.archetype or "").strip().upper()
    if archetype in _UNKNOWN_ARCHETYPES:
        return True, ""
    blocked = ARCHETYPE_PROP_BLOCKED.get(archetype)
    if not blocked:
        return True, ""

    prop = normalize_prop(candidate.prop_type)
    category = (candidate.category or "").strip().upper()
    for override_category, prop_fragment in CATEGORY_PROP_OVERRIDES:
        if category == override_category and prop_fragment in prop:
            return True, f"override {category} allows {candidate.prop_type}"

    stat_type = known_stat_type(candidate.prop_type)
    for blocked_prop in blocked:
        if blocked_prop in prop or (stat_type is not None and blocked_prop == stat_type):
            return False, f"{archetype} blocked for {blocked_prop}"
    return True, ""


def check_h2h(view: H2HView | None, *, line: float, side: str) -> tuple[bool, str]:
    """Block candidates whose matchup history contradicts the pick."""
    if view is None:
        return True, "no_h2h"
    if view.games_played < H2H_MIN_GAMES:
        return True, f"h2h_insufficient ({view.games_played} games)"
    if view.games_played < H2H_BLOCK_GAMES:
        return True, f"h2h_ok ({view.games_played} games)"

    if view.hit_rate < H2H_MIN_HIT_RATE:
        return False, (
            f"h2h hit rate {view.hit_rate:.0%} vs {view.opponent} "
            f"over {view.games_played} games"
        )
    if side == "over" and view.avg_stat < line * H2H_OVER_AVG_FLOOR:
        return False, f"h2h avg {view.avg_stat:g} below {H2H_OVER_AVG_FLOOR:.0%} of line {line:g}"
    if side == "under" and view.avg_stat > line * H2H_UNDER_AVG_CEILING:
        return False, (
            f"h2h avg {view.avg_stat:g} above {H2H_UNDER_AVG_CEILING:.0%} of line {line:g}"
        )
    return True, f"h2h_ok ({view.games_played} games)"


def check_pattern(
    rule: PatternRule | None,
    *,
    line: float,
    side: str,
    environment: GameEnvironment | None,
    defense_rank: int | None,
    missing_context_penalty: float = MISSING_CONTEXT_PENALTY,
) -> PatternCheck:
    """Score a candidate against its category rule.

    Checks run in a fixed order; an out-of-bounds line, an excluded script and an
    UNDER pick without favorable defensive context are hard failures. Missing game
    environment only costs `missing_context_penalty` and skips the remaining checks.
    """
    if rule is None:
        return PatternCheck(passes=True, score=0.0, reason="no_rule")

    if rule.min_line is not None and line < rule.min_line:
        return PatternCheck(False, 0.0, f"line {line:g} below min {rule.min_line:g}")
    if rule.max_line is not None and line > rule.max_line:
        return PatternCheck(False, 0.0, f"line {line:g} above max {rule.max_line:g}")

    score = 2.0
    reasons = ["line_ok"]

    if rule.needs_context and environment is None:
        score += missing_context_penalty
        reasons.append(f"no_context({missing_context_penalty:+g})")
        return PatternCheck(True, score, ", ".join(reasons))

    if environment is not None:
        script = normalize_script(environment.game_script)
        pace = normalize_pace(environment.pace_rating)

        if script in rule.excluded_game_script:
            reasons.append(f"excluded_script {script}")
            return PatternCheck(False, 0.0, ", ".join(reasons))

        if rule.preferred_game_script:
            if script in rule.preferred_game_script:
                score += 3
                reasons.append(f"script {script}")
            else:
                score -= 1
                reasons.append(f"script_miss {script}")

        if rule.preferred_pace:
            preferred = {normalize_pace(value) for value in rule.preferred_pace}
            if pace in preferred:
                score += 2
                reasons.append(f"pace {pace}")
            else:
                score -= 1
                reasons.append(f"pace_miss {pace}")

        total = environment.vegas_total
        if rule.max_vegas_total is not None:
            if total <= rule.max_vegas_total:
                score += 2
                reasons.append(f"total {total:g}<={rule.max_vegas_total:g}")
            else:
                score -= 2
                reasons.append(f"total {total:g}>{rule.max_vegas_total:g}")
        if rule.min_vegas_total is not None:
            if total >= rule.min_vegas_total:
                score += 2
                reasons.append(f"total {total:g}>={rule.min_vegas_total:g}")
            else:
                score -= 1
                reasons.append(f"total {total:g}<{rule.min_vegas_total:g}")

        grind = environment.grind_factor
        if grind is not None:
            if side == "under" and grind >= UNDER_GRIND_THRESHOLD:
                score += 1
                reasons.append(f"grind {grind:g}")
            elif (
                side == "over"
                and rule.stat_type == "points"
                and grind >= OVER_POINTS_GRIND_THRESHOLD
            ):
                score -= 1
                reasons.append(f"grind_drag {grind:g}")

    if rule.preferred_defense_rank is not None:
        ceiling = rule.preferred_defense_rank
        if defense_rank is None:
            if side == "under":
                reasons.append("no_defense_rank")
                return PatternCheck(False, 0.0, ", ".join(reasons))
            score -= 1
            reasons.append("no_defense_rank(-1)")
        elif defense_rank <= ceiling:
            score += 4
            reasons.append(f"defense_rank {defense_rank}<={ceiling}")
        elif side == "under":
            reasons.append(f"defense_rank {defense_rank}>{ceiling}")
            return PatternCheck(False, 0.0, ", ".join(reasons))
        else:
            score -= 2
            reasons.append(f"defense_rank {defense_rank}>{ceiling}(-2)")

    return PatternCheck(True, score, ", ".join(reasons))

"""Static rule table: category pattern rules, archetype blocks and the leg formula."""

from __future__ import annotations

from dataclasses import dataclass

TARGET_LEG_COUNT = 6
MAX_LEGS_PER_TEAM = 1

MISSING_CONTEXT_PENALTY = -2.0


@dataclass(frozen=True)
class PatternRule:
    """Validation rule for one betting category."""

    stat_type: str
    min_line: float | None = None
    max_line: float | None = None
    preferred_pace: tuple[str, ...] = ()
    preferred_game_script: tuple[str, ...] = ()
    excluded_game_script: tuple[str, ...] = ()
    min_vegas_total: float | None = None
    max_vegas_total: float | None = None
    # Lower rank means a stronger defense.
    preferred_defense_rank: int | None = None

    @property
    def needs_context(self) -> bool:
        return bool(
            self.preferred_game_script
            or self.excluded_game_script
            or self.preferred_pace
            or self.min_vegas_total is not None
            or self.max_vegas_total is not None
        )


@dataclass(frozen=True)
class FormulaSlot:
    category: str
    side: str
    count: int = 1


PATTERN_RULES: dict[str, PatternRule] = {
    "BIG_REBOUNDER": PatternRule(
        stat_type="rebounds",
        min_line=7.5,
        max_line=14.5,
        preferred_pace=("SLOW", "MEDIUM"),
        max_vegas_total=222.0,
        preferred_game_script=("COMPETITIVE", "GRIND_OUT"),
    ),
    "ROLE_PLAYER_REB": PatternRule(
        stat_type="rebounds",
        min_line=3.5,
        max_line=6.5,
        preferred_pace=("SLOW", "MEDIUM"),
    ),
    "LOW_SCORER_UNDER": PatternRule(
        stat_type="points",
        min_line=4.5,
        max_line=10.5,
        preferred_defense_rank=12,
        preferred_game_script=("GRIND_OUT", "COMPETITIVE"),
    ),
    "BIG_ASSIST_OVER": PatternRule(
        stat_type="assists",
        min_line=2.5,
        max_line=5.5,
        excluded_game_script=("GRIND_OUT",),
    ),
    "STAR_FLOOR_OVER": PatternRule(
        stat_type="points",
        min_line=18.5,
        preferred_game_script=("SHOOTOUT", "COMPETITIVE"),
        min_vegas_total=218.0,
    ),
    "THREE_POINT_SHOOTER": PatternRule(
        stat_type="threes",
        min_line=0.5,
        max_line=4.5,
        preferred_game_script=("SHOOTOUT", "COMPETITIVE"),
        min_vegas_total=215.0,
    ),
    "ASSIST_ANCHOR": PatternRule(
        stat_type="assists",
        max_line=6.5,
        preferred_game_script=("GRIND_OUT",),
    ),
    "HIGH_REB_UNDER": PatternRule(
        stat_type="rebounds",
        min_line=8.5,
        preferred_pace=("FAST",),
    ),
}

# Ordered by settled hit rate; one leg per slot.
PROVEN_FORMULA: tuple[FormulaSlot, ...] = (
    FormulaSlot("STAR_FLOOR_OVER", "over"),
    FormulaSlot("BIG_ASSIST_OVER", "over"),
    FormulaSlot("THREE_POINT_SHOOTER", "over"),
    FormulaSlot("LOW_SCORER_UNDER", "under"),
    FormulaSlot("ROLE_PLAYER_REB", "over"),
    FormulaSlot("BIG_REBOUNDER", "over"),
)

ARCHETYPE_PROP_BLOCKED: dict[str, tuple[str, ...]] = {
    "ELITE_REBOUNDER": ("points", "threes"),
    "GLASS_CLEANER": ("points", "threes", "assists"),
    "RIM_PROTECTOR": ("points", "threes"),
    "PURE_SHOOTER": ("rebounds", "blocks"),
    "PLAYMAKER": ("rebounds", "blocks"),
    "COMBO_GUARD": ("rebounds", "blocks"),
    "SCORING_GUARD": ("rebounds", "blocks"),
}

# (category, prop fragment) pairs allowed even when the archetype blocks the prop.
CATEGORY_PROP_OVERRIDES: tuple[tuple[str, str], ...] = (("BIG_ASSIST_OVER", "assist"),)

CATEGORY_MIN_REQUIREMENTS = {
    "min_sample_size": 5,
    "min_hit_rate": 0.60,
}


def get_pattern_rule(category: str | None) -> PatternRule | None:
    if not category:
        return None
    return PATTERN_RULES.get(category.strip().upper())


def category_is_proven(*, sample_size: int | None, hit_rate: float | None) -> bool:
    """Whether a category's settled record clears the minimum sample and hit rate."""
    if sample_size is None or hit_rate is None:
        return False
    return (
        sample_size >= CATEGORY_MIN_REQUIREMENTS["min_sample_size"]
        and hit_rate >= CATEGORY_MIN_REQUIREMENTS["min_hit_rate"]
    )

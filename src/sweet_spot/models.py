"""Data model for candidate picks, slate context and frozen slates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sweet_spot.util.parsing import (
    normalize_side,
    optional_str,
    safe_float,
    safe_int,
    safe_str,
    safe_unit,
)

DEFAULT_AMERICAN_ODDS = -110


@dataclass(frozen=True)
class CandidatePick:
    """One proposed leg as fetched for a slate."""

    pick_id: str
    player_name: str
    prop_type: str
    line: float | None
    side: str
    team_name: str = ""
    confidence_score: float | None = None
    archetype: str | None = None
    category: str | None = None
    l10_hit_rate: float | None = None
    category_sample_size: int | None = None
    category_hit_rate: float | None = None
    injury_status: str | None = None
    edge: float | None = None
    event_id: str | None = None
    projected_value: float | None = None
    american_odds: int | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> CandidatePick:
        player_name = safe_str(payload.get("player_name"))
        prop_type = safe_str(payload.get("prop_type"))
        side_raw = safe_str(payload.get("side"))
        side = normalize_side(side_raw) or side_raw.lower()
        pick_id = safe_str(payload.get("id", payload.get("pick_id")))
        if not pick_id:
            pick_id = f"{player_name}|{prop_type}|{side}".lower()
        return cls(
            pick_id=pick_id,
            player_name=player_name,
            prop_type=prop_type,
            line=safe_float(payload.get("line")),
            side=side,
            team_name=safe_str(_first(payload, "team_name", "teamName")),
            confidence_score=safe_unit(_first(payload, "confidence_score", "confidenceScore")),
            archetype=optional_str(payload.get("archetype")),
            category=optional_str(payload.get("category")),
            l10_hit_rate=safe_unit(_first(payload, "l10_hit_rate", "l10HitRate")),
            category_sample_size=safe_int(
                _first(payload, "category_sample_size", "categorySampleSize")
            ),
            category_hit_rate=safe_unit(_first(payload, "category_hit_rate", "categoryHitRate")),
            injury_status=optional_str(_first(payload, "injury_status", "injuryStatus")),
            edge=safe_float(payload.get("edge")),
            event_id=optional_str(_first(payload, "event_id", "eventId")),
            projected_value=safe_float(_first(payload, "projected_value", "projectedValue")),
            american_odds=safe_int(_first(payload, "american_odds", "americanOdds")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.pick_id,
            "player_name": self.player_name,
            "team_name": self.team_name,
            "prop_type": self.prop_type,
            "line": self.line,
            "side": self.side,
            "confidence_score": self.confidence_score,
            "archetype": self.archetype,
            "category": self.category,
            "l10_hit_rate": self.l10_hit_rate,
            "category_sample_size": self.category_sample_size,
            "category_hit_rate": self.category_hit_rate,
            "injury_status": self.injury_status,
            "edge": self.edge,
            "event_id": self.event_id,
            "projected_value": self.projected_value,
            "american_odds": self.american_odds,
        }

    @property
    def price(self) -> int:
        return self.american_odds if self.american_odds else DEFAULT_AMERICAN_ODDS


@dataclass(frozen=True)
class H2HRecord:
    """Historical record for one (player, opponent, stat) matchup."""

    opponent: str
    games_played: int
    avg_stat: float
    hit_rate_over: float
    hit_rate_under: float
    max_stat: float
    min_stat: float

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> H2HRecord:
        return cls(
            opponent=safe_str(payload.get("opponent")),
            games_played=safe_int(_first(payload, "games_played", "gamesPlayed")) or 0,
            avg_stat=safe_float(_first(payload, "avg_stat", "avgStat")) or 0.0,
            hit_rate_over=safe_unit(_first(payload, "hit_rate_over", "hitRateOver")) or 0.0,
            hit_rate_under=safe_unit(_first(payload, "hit_rate_under", "hitRateUnder")) or 0.0,
            max_stat=safe_float(_first(payload, "max_stat", "maxStat")) or 0.0,
            min_stat=safe_float(_first(payload, "min_stat", "minStat")) or 0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "opponent": self.opponent,
            "games_played": self.games_played,
            "avg_stat": self.avg_stat,
            "hit_rate_over": self.hit_rate_over,
            "hit_rate_under": self.hit_rate_under,
            "max_stat": self.max_stat,
            "min_stat": self.min_stat,
        }

    def for_side(self, side: str) -> H2HView:
        return H2HView(
            opponent=self.opponent,
            games_played=self.games_played,
            avg_stat=self.avg_stat,
            hit_rate=self.hit_rate_over if side == "over" else self.hit_rate_under,
            max_stat=self.max_stat,
            min_stat=self.min_stat,
        )


@dataclass(frozen=True)
class H2HView:
    """Head-to-head record resolved for one side of a candidate."""

    opponent: str
    games_played: int
    avg_stat: float
    hit_rate: float
    max_stat: float
    min_stat: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "opponent": self.opponent,
            "games_played": self.games_played,
            "avg_stat": self.avg_stat,
            "hit_rate": self.hit_rate,
            "max_stat": self.max_stat,
            "min_stat": self.min_stat,
        }


@dataclass(frozen=True)
class GameEnvironment:
    """Per-team game context for a slate."""

    vegas_total: float
    pace_rating: str
    game_script: str
    opponent: str
    grind_factor: float | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> GameEnvironment:
        total = safe_float(_first(payload, "vegas_total", "vegasTotal"))
        return cls(
            vegas_total=total if total is not None else 220.0,
            pace_rating=safe_str(_first(payload, "pace_rating", "paceRating")) or "MEDIUM",
            game_script=safe_str(_first(payload, "game_script", "gameScript")) or "COMPETITIVE",
            opponent=safe_str(payload.get("opponent")),
            grind_factor=safe_unit(_first(payload, "grind_factor", "grindFactor")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vegas_total": self.vegas_total,
            "pace_rating": self.pace_rating,
            "game_script": self.game_script,
            "grind_factor": self.grind_factor,
            "opponent": self.opponent,
        }


@dataclass(frozen=True)
class FrozenSlate:
    """Serializable snapshot of every engine input for one slate."""

    slate_date: str
    preset_id: str
    candidates: tuple[CandidatePick, ...]
    h2h: dict[str, H2HRecord] = field(default_factory=dict)
    game_environment: dict[str, GameEnvironment] = field(default_factory=dict)
    defense_ranks: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> FrozenSlate:
        picks = _first(payload, "picks", "candidates") or []
        h2h = _first(payload, "h2h", "h2h_map", "h2hMap")
        env = _first(payload, "game_environment", "game_context_map", "gameContextMap")
        defense = _first(payload, "defense_ranks", "defense_map", "defenseMap")
        ranks: dict[str, int] = {}
        for key, value in _as_mapping(defense).items():
            rank = safe_int(value)
            if rank is not None:
                ranks[str(key)] = rank
        return cls(
            slate_date=safe_str(
                _first(payload, "slate_date", "displayed_date", "displayedDate")
            ),
            preset_id=safe_str(_first(payload, "preset_id", "preset_key", "presetKey")),
            candidates=tuple(
                CandidatePick.from_dict(row) for row in picks if isinstance(row, dict)
            ),
            h2h={
                str(key): H2HRecord.from_dict(value)
                for key, value in _as_mapping(h2h).items()
                if isinstance(value, dict)
            },
            game_environment={
                str(key): GameEnvironment.from_dict(value)
                for key, value in _as_mapping(env).items()
                if isinstance(value, dict)
            },
            defense_ranks=ranks,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "slate_date": self.slate_date,
            "preset_id": self.preset_id,
            "picks": [candidate.to_dict() for candidate in self.candidates],
            "h2h": {key: self.h2h[key].to_dict() for key in sorted(self.h2h)},
            "game_environment": {
                key: self.game_environment[key].to_dict()
                for key in sorted(self.game_environment)
            },
            "defense_ranks": {key: self.defense_ranks[key] for key in sorted(self.defense_ranks)},
        }


def _first(payload: dict[str, Any], *keys: str) -> Any:
    """First non-null value among `keys`."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _as_mapping(value: Any) -> dict[Any, Any]:
    if isinstance(value, dict):
        return value
    return {}

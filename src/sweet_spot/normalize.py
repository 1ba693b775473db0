"""Vocabulary normalization for game context, props, teams and players."""

from __future__ import annotations

import re
import unicodedata
from typing import Literal

Pace = Literal["FAST", "MEDIUM", "SLOW"]
Script = Literal["SHOOTOUT", "GRIND_OUT", "COMPETITIVE", "BLOWOUT", "HARD_BLOWOUT"]

PACE_VALUES: tuple[Pace, ...] = ("SLOW", "MEDIUM", "FAST")
SCRIPT_VALUES: tuple[Script, ...] = (
    "SHOOTOUT",
    "GRIND_OUT",
    "COMPETITIVE",
    "BLOWOUT",
    "HARD_BLOWOUT",
)

# Older rule tables used LOW/HIGH for pace.
_LEGACY_PACE = {"LOW": "SLOW", "HIGH": "FAST"}

TEAM_ABBREVIATIONS = {
    "atlanta hawks": "ATL",
    "atlanta": "ATL",
    "hawks": "ATL",
    "atl": "ATL",
    "boston celtics": "BOS",
    "boston": "BOS",
    "celtics": "BOS",
    "bos": "BOS",
    "brooklyn nets": "BKN",
    "brooklyn": "BKN",
    "nets": "BKN",
    "bkn": "BKN",
    "brk": "BKN",
    "charlotte hornets": "CHA",
    "charlotte": "CHA",
    "hornets": "CHA",
    "cha": "CHA",
    "cho": "CHA",
    "chicago bulls": "CHI",
    "chicago": "CHI",
    "bulls": "CHI",
    "chi": "CHI",
    "cleveland cavaliers": "CLE",
    "cleveland": "CLE",
    "cavaliers": "CLE",
    "cavs": "CLE",
    "cle": "CLE",
    "dallas mavericks": "DAL",
    "dallas": "DAL",
    "mavericks": "DAL",
    "mavs": "DAL",
    "dal": "DAL",
    "denver nuggets": "DEN",
    "denver": "DEN",
    "nuggets": "DEN",
    "den": "DEN",
    "detroit pistons": "DET",
    "detroit": "DET",
    "pistons": "DET",
    "det": "DET",
    "golden state warriors": "GSW",
    "golden state": "GSW",
    "warriors": "GSW",
    "gs": "GSW",
    "gsw": "GSW",
    "houston rockets": "HOU",
    "houston": "HOU",
    "rockets": "HOU",
    "hou": "HOU",
    "indiana pacers": "IND",
    "indiana": "IND",
    "pacers": "IND",
    "ind": "IND",
    "los angeles clippers": "LAC",
    "la clippers": "LAC",
    "clippers": "LAC",
    "lac": "LAC",
    "los angeles lakers": "LAL",
    "la lakers": "LAL",
    "lakers": "LAL",
    "lal": "LAL",
    "memphis grizzlies": "MEM",
    "memphis": "MEM",
    "grizzlies": "MEM",
    "mem": "MEM",
    "miami heat": "MIA",
    "miami": "MIA",
    "heat": "MIA",
    "mia": "MIA",
    "milwaukee bucks": "MIL",
    "milwaukee": "MIL",
    "bucks": "MIL",
    "mil": "MIL",
    "minnesota timberwolves": "MIN",
    "minnesota": "MIN",
    "timberwolves": "MIN",
    "wolves": "MIN",
    "min": "MIN",
    "new orleans pelicans": "NOP",
    "new orleans": "NOP",
    "pelicans": "NOP",
    "nop": "NOP",
    "nor": "NOP",
    "new york knicks": "NYK",
    "new york": "NYK",
    "knicks": "NYK",
    "ny": "NYK",
    "nyk": "NYK",
    "oklahoma city thunder": "OKC",
    "oklahoma city": "OKC",
    "thunder": "OKC",
    "okc": "OKC",
    "orlando magic": "ORL",
    "orlando": "ORL",
    "magic": "ORL",
    "orl": "ORL",
    "philadelphia 76ers": "PHI",
    "philadelphia sixers": "PHI",
    "philadelphia": "PHI",
    "76ers": "PHI",
    "sixers": "PHI",
    "phi": "PHI",
    "phoenix suns": "PHX",
    "phoenix": "PHX",
    "suns": "PHX",
    "phx": "PHX",
    "pho": "PHX",
    "portland trail blazers": "POR",
    "portland": "POR",
    "trail blazers": "POR",
    "blazers": "POR",
    "por": "POR",
    "sacramento kings": "SAC",
    "sacramento": "SAC",
    "kings": "SAC",
    "sac": "SAC",
    "san antonio spurs": "SAS",
    "san antonio": "SAS",
    "spurs": "SAS",
    "sa": "SAS",
    "sas": "SAS",
    "toronto raptors": "TOR",
    "toronto": "TOR",
    "raptors": "TOR",
    "tor": "TOR",
    "utah jazz": "UTA",
    "utah": "UTA",
    "jazz": "UTA",
    "uta": "UTA",
    "washington wizards": "WAS",
    "washington": "WAS",
    "wizards": "WAS",
    "was": "WAS",
}

# Substring fallback only considers multi-word names and nicknames; bare
# abbreviations like "sa" or "ny" would match inside unrelated names.
_SUBSTRING_ALIASES = sorted(
    (alias for alias in TEAM_ABBREVIATIONS if len(alias) > 3),
    key=lambda alias: (-len(alias), alias),
)


def normalize_pace(value: str | None) -> Pace:
    """Map free-form pace labels onto SLOW/MEDIUM/FAST (default MEDIUM)."""
    raw = (value or "MEDIUM").strip().upper()
    raw = _LEGACY_PACE.get(raw, raw)
    if raw in PACE_VALUES:
        return raw  # type: ignore[return-value]
    return "MEDIUM"


def normalize_script(value: str | None) -> Script:
    """Map free-form game-script labels onto the fixed vocabulary (default COMPETITIVE)."""
    raw = (value or "COMPETITIVE").strip().upper().replace("-", "_").replace(" ", "_")
    if raw in SCRIPT_VALUES:
        return raw  # type: ignore[return-value]
    return "COMPETITIVE"


def normalize_prop(value: str | None) -> str:
    """Lower-case letters only: `Points + Rebounds` -> `pointsrebounds`."""
    return re.sub(r"[^a-z]", "", (value or "").lower())


def known_stat_type(value: str | None) -> str | None:
    """Stat bucket for a recognised prop type, `None` for anything else."""
    prop = normalize_prop(value)
    if "rebound" in prop:
        return "rebounds"
    if "assist" in prop:
        return "assists"
    if "three" in prop or "3pt" in (value or "").lower():
        return "threes"
    if "block" in prop:
        return "blocks"
    if "steal" in prop:
        return "steals"
    if "point" in prop:
        return "points"
    return None


def stat_type_for_prop(value: str | None) -> str:
    """Bucket a prop type into the stat vocabulary used by the rule table."""
    return known_stat_type(value) or "points"


def team_abbrev(name: str | None) -> str:
    """Resolve a team name, nickname or abbreviation to its canonical abbreviation."""
    lowered = " ".join((name or "").lower().split())
    if not lowered:
        return ""
    exact = TEAM_ABBREVIATIONS.get(lowered)
    if exact:
        return exact
    for alias in _SUBSTRING_ALIASES:
        if alias in lowered:
            return TEAM_ABBREVIATIONS[alias]
    return lowered.replace(" ", "")[:3].upper()


def player_key(name: str | None) -> str:
    """Case-insensitive player key (`P.J. Washington` == `pj washington`)."""
    lowered = (name or "").lower()
    ascii_only = "".join(
        ch for ch in unicodedata.normalize("NFKD", lowered) if ord(ch) < 128
    )
    without_dots = ascii_only.replace(".", "")
    return " ".join(without_dots.split())

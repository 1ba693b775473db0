"""Weight presets for the candidate scoring function."""

from __future__ import annotations

import re
from dataclasses import dataclass

from sweet_spot.errors import UnknownPresetError


@dataclass(frozen=True)
class WeightPreset:
    """Relative weights and default fills for one scoring profile."""

    preset_id: str
    name: str
    description: str
    pattern: float
    reliability: float
    confidence: float
    reliability_default: float
    confidence_default: float
    missing_reliability_penalty: float

    def to_dict(self) -> dict[str, object]:
        return {
            "preset_id": self.preset_id,
            "name": self.name,
            "description": self.description,
            "pattern": self.pattern,
            "reliability": self.reliability,
            "confidence": self.confidence,
            "reliability_default": self.reliability_default,
            "confidence_default": self.confidence_default,
            "missing_reliability_penalty": self.missing_reliability_penalty,
        }


BALANCED = WeightPreset(
    preset_id="balanced",
    name="Balanced",
    description="Even blend of pattern fit, trailing hit rate and model confidence.",
    pattern=1.0,
    reliability=6.0,
    confidence=0.25,
    reliability_default=0.6,
    confidence_default=0.7,
    missing_reliability_penalty=-0.5,
)

RELIABILITY_MAX = WeightPreset(
    preset_id="reliability_max",
    name="Reliability Max",
    description="Leans hardest on the trailing hit rate; punishes missing history.",
    pattern=1.1,
    reliability=7.0,
    confidence=0.22,
    reliability_default=0.58,
    confidence_default=0.7,
    missing_reliability_penalty=-0.75,
)

SHARP = WeightPreset(
    preset_id="sharp",
    name="Sharp",
    description="Gives model confidence more say relative to the hit rate.",
    pattern=1.0,
    reliability=5.5,
    confidence=0.35,
    reliability_default=0.6,
    confidence_default=0.7,
    missing_reliability_penalty=-0.6,
)

PRESETS: dict[str, WeightPreset] = {
    preset.preset_id: preset for preset in (BALANCED, RELIABILITY_MAX, SHARP)
}

DEFAULT_PRESET_ID = BALANCED.preset_id


def normalize_preset_id(value: str | None) -> str:
    """`reliabilityMax`, `Reliability-Max` and `reliability_max` all map to one id."""
    raw = (value or "").strip()
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", raw)
    return re.sub(r"[^a-z0-9]+", "_", snake.lower()).strip("_")


def get_preset(preset_id: str | None = None) -> WeightPreset:
    key = normalize_preset_id(preset_id) or DEFAULT_PRESET_ID
    preset = PRESETS.get(key)
    if preset is None:
        known = ", ".join(sorted(PRESETS))
        raise UnknownPresetError(f"unknown preset: {preset_id} (expected one of: {known})")
    return preset

"""Weighted candidate scoring."""

from __future__ import annotations

from dataclasses import dataclass

from sweet_spot.presets import WeightPreset

SAMPLE_SIZE_FLOOR = 10
SMALL_SAMPLE_PENALTY = -0.5


@dataclass(frozen=True)
class ScoreBreakdown:
    """Additive components of one candidate score."""

    pattern: float
    reliability: float
    confidence: float
    missing_reliability_penalty: float
    sample_penalty: float
    reliability_input: float
    confidence_input: float
    reliability_imputed: bool
    confidence_imputed: bool

    @property
    def total(self) -> float:
        return (
            self.pattern
            + self.reliability
            + self.confidence
            + self.missing_reliability_penalty
            + self.sample_penalty
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "pattern": self.pattern,
            "reliability": self.reliability,
            "confidence": self.confidence,
            "missing_reliability_penalty": self.missing_reliability_penalty,
            "sample_penalty": self.sample_penalty,
            "reliability_input": self.reliability_input,
            "confidence_input": self.confidence_input,
            "reliability_imputed": self.reliability_imputed,
            "confidence_imputed": self.confidence_imputed,
            "total": self.total,
        }


def sample_penalty(sample_size: int | None) -> float:
    if sample_size is None:
        return 0.0
    return SMALL_SAMPLE_PENALTY if sample_size < SAMPLE_SIZE_FLOOR else 0.0


def score_candidate(
    *,
    pattern_score: float,
    reliability: float | None,
    confidence: float | None,
    sample_size: int | None,
    preset: WeightPreset,
) -> ScoreBreakdown:
    """Combine pattern fit, hit-rate reliability and confidence under `preset`.

    Missing reliability is filled with the preset default and charged the
    preset's missing-reliability penalty; missing confidence is filled without
    a penalty.
    """
    reliability_imputed = reliability is None
    confidence_imputed = confidence is None
    reliability_value = preset.reliability_default if reliability is None else reliability
    confidence_value = preset.confidence_default if confidence is None else confidence
    return ScoreBreakdown(
        pattern=pattern_score * preset.pattern,
        reliability=reliability_value * preset.reliability,
        confidence=confidence_value * preset.confidence,
        missing_reliability_penalty=(
            preset.missing_reliability_penalty if reliability_imputed else 0.0
        ),
        sample_penalty=sample_penalty(sample_size),
        reliability_input=reliability_value,
        confidence_input=confidence_value,
        reliability_imputed=reliability_imputed,
        confidence_imputed=confidence_imputed,
    )

import pytest

from sweet_spot.errors import UnknownPresetError
from sweet_spot.presets import (
    DEFAULT_PRESET_ID,
    PRESETS,
    get_preset,
    normalize_preset_id,
)


def test_normalize_preset_id_aliases() -> None:
    assert normalize_preset_id("reliabilityMax") == "reliability_max"
    assert normalize_preset_id("Reliability-Max") == "reliability_max"
    assert normalize_preset_id(" reliability_max ") == "reliability_max"
    assert normalize_preset_id(None) == ""


def test_get_preset_defaults_to_balanced() -> None:
    assert DEFAULT_PRESET_ID == "balanced"
    assert get_preset().preset_id == "balanced"
    assert get_preset("").preset_id == "balanced"
    assert get_preset("SHARP").preset_id == "sharp"


def test_get_preset_unknown_raises() -> None:
    with pytest.raises(UnknownPresetError, match="unknown preset"):
        get_preset("yolo")


def test_presets_penalize_missing_reliability() -> None:
    for preset in PRESETS.values():
        assert preset.missing_reliability_penalty < 0
        assert 0 < preset.reliability_default < 1
        assert preset.to_dict()["preset_id"] == preset.preset_id

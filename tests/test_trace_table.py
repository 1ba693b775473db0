from pathlib import Path

import polars as pl
import pytest

from sweet_spot.engine import build_leg_set
from sweet_spot.models import FrozenSlate
from sweet_spot.presets import BALANCED
from sweet_spot.snapshot import load_slate
from sweet_spot.trace_table import legs_frame, traces_frame, write_frame

FIXTURE_PATH = Path(__file__).parent / "fixtures" / "frozen_slate.json"


def test_traces_frame_has_one_typed_row_per_candidate() -> None:
    output = build_leg_set(load_slate(FIXTURE_PATH), BALANCED)
    frame = traces_frame(output)

    assert frame.height == 13
    assert frame.schema["line"] == pl.Float64
    assert frame.schema["defense_rank"] == pl.Int64
    assert frame.schema["category_proven"] == pl.Boolean
    assert frame["preset_id"].unique().to_list() == ["balanced"]
    assert frame.filter(pl.col("status") == "selected").height == 6
    assert frame.filter(pl.col("stage") == "invalid")["line"].to_list() == [None]


def test_legs_frame_columns() -> None:
    output = build_leg_set(load_slate(FIXTURE_PATH), BALANCED)
    frame = legs_frame(output)

    assert frame.columns[:3] == ["slate_date", "preset_id", "leg"]
    assert frame["leg"].to_list() == [1, 2, 3, 4, 5, 6]
    assert frame["pick_id"].to_list() == ["c1", "c2", "c3", "c4", "c8", "c6"]


def test_empty_output_yields_empty_typed_frames() -> None:
    output = build_leg_set(FrozenSlate(slate_date="", preset_id="", candidates=()), BALANCED)

    traces = traces_frame(output)
    legs = legs_frame(output)
    assert traces.height == 0
    assert legs.height == 0
    assert traces.schema["score"] == pl.Float64


def test_write_frame_csv(tmp_path: Path) -> None:
    output = build_leg_set(load_slate(FIXTURE_PATH), BALANCED)
    path = write_frame(legs_frame(output), tmp_path / "out" / "legs.csv")

    loaded = pl.read_csv(path)
    assert loaded.height == 6
    assert "score" in loaded.columns


def test_write_frame_rejects_unknown_suffix(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="unsupported export format"):
        write_frame(pl.DataFrame({"a": [1]}), tmp_path / "legs.xlsx")

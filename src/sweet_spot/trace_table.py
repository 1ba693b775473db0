"""Tabular views of builder output for export."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import polars as pl

from sweet_spot.engine import BuilderOutput

_TABLE_SCHEMAS: dict[str, list[tuple[str, Any]]] = {
    "traces": [
        ("slate_date", pl.Utf8),
        ("preset_id", pl.Utf8),
        ("index", pl.Int64),
        ("pick_id", pl.Utf8),
        ("player_name", pl.Utf8),
        ("team", pl.Utf8),
        ("opponent", pl.Utf8),
        ("prop_type", pl.Utf8),
        ("line", pl.Float64),
        ("side", pl.Utf8),
        ("category", pl.Utf8),
        ("status", pl.Utf8),
        ("stage", pl.Utf8),
        ("reason", pl.Utf8),
        ("pattern_score", pl.Float64),
        ("defense_rank", pl.Int64),
        ("reliability", pl.Float64),
        ("confidence", pl.Float64),
        ("score", pl.Float64),
        ("phase", pl.Utf8),
        ("slot_category", pl.Utf8),
        ("category_proven", pl.Boolean),
    ],
    "legs": [
        ("slate_date", pl.Utf8),
        ("preset_id", pl.Utf8),
        ("leg", pl.Int64),
        ("pick_id", pl.Utf8),
        ("player_name", pl.Utf8),
        ("team", pl.Utf8),
        ("prop_type", pl.Utf8),
        ("line", pl.Float64),
        ("side", pl.Utf8),
        ("category", pl.Utf8),
        ("score", pl.Float64),
        ("pattern_score", pl.Float64),
        ("defense_rank", pl.Int64),
        ("phase", pl.Utf8),
        ("slot_category", pl.Utf8),
    ],
}


def _enforce_schema(table_name: str, rows: list[dict[str, Any]]) -> pl.DataFrame:
    schema = _TABLE_SCHEMAS[table_name]
    columns = [name for name, _ in schema]
    if not rows:
        return pl.DataFrame(schema={name: dtype for name, dtype in schema})
    working = pl.DataFrame(rows, infer_schema_length=None)
    for name, dtype in schema:
        if name not in working.columns:
            working = working.with_columns(pl.lit(None).cast(dtype).alias(name))
        else:
            working = working.with_columns(pl.col(name).cast(dtype, strict=False))
    return working.select(columns)


def traces_frame(output: BuilderOutput) -> pl.DataFrame:
    rows = []
    for row in output.traces:
        payload = row.to_dict()
        payload["slate_date"] = output.slate_date
        payload["preset_id"] = output.active_preset
        payload.pop("breakdown", None)
        rows.append(payload)
    return _enforce_schema("traces", rows)


def legs_frame(output: BuilderOutput) -> pl.DataFrame:
    rows = []
    for position, leg in enumerate(output.legs, start=1):
        rows.append(
            {
                "slate_date": output.slate_date,
                "preset_id": output.active_preset,
                "leg": position,
                "pick_id": leg.candidate.pick_id,
                "player_name": leg.candidate.player_name,
                "team": leg.team,
                "prop_type": leg.candidate.prop_type,
                "line": leg.candidate.line,
                "side": leg.candidate.side,
                "category": leg.candidate.category,
                "score": leg.score,
                "pattern_score": leg.pattern_score,
                "defense_rank": leg.defense_rank,
                "phase": leg.phase,
                "slot_category": leg.slot_category,
            }
        )
    return _enforce_schema("legs", rows)


def write_frame(frame: pl.DataFrame, path: Path) -> Path:
    """Write CSV or Parquet depending on the file suffix."""
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        frame.write_parquet(path)
    elif suffix == ".csv":
        frame.write_csv(path)
    else:
        raise ValueError(f"unsupported export format: {path.suffix or '(none)'}")
    return path

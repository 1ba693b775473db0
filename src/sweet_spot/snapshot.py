"""Frozen slate persistence."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from sweet_spot.errors import SlateFormatError
from sweet_spot.models import FrozenSlate


def slate_filename(slate_date: str, preset_id: str) -> str:
    """`frozen_slate_2025-01-15_balanced.json`"""
    date_part = re.sub(r"[^0-9A-Za-z-]+", "-", slate_date.strip()) or "undated"
    preset_part = re.sub(r"[^0-9A-Za-z_]+", "_", preset_id.strip()) or "default"
    return f"frozen_slate_{date_part}_{preset_part}.json"


def slate_to_text(slate: FrozenSlate) -> str:
    return json.dumps(slate.to_dict(), sort_keys=True, indent=2) + "\n"


def slate_from_text(raw: str, *, source: str = "<text>") -> FrozenSlate:
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SlateFormatError(f"invalid slate JSON: {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SlateFormatError(f"slate root must be an object: {source}")
    picks = payload.get("picks", payload.get("candidates"))
    if not isinstance(picks, list):
        raise SlateFormatError(f"slate is missing a picks list: {source}")
    return FrozenSlate.from_dict(payload)


def load_slate(path: Path) -> FrozenSlate:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SlateFormatError(f"failed reading slate: {path}") from exc
    return slate_from_text(raw, source=str(path))


def dump_slate(slate: FrozenSlate, path: Path) -> Path:
    """Write `slate`; a directory target gets the canonical file name."""
    target = path / slate_filename(slate.slate_date, slate.preset_id) if path.is_dir() else path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(slate_to_text(slate), encoding="utf-8")
    return target


def check_round_trip(slate: FrozenSlate) -> bool:
    """Whether serializing and reloading `slate` reproduces it exactly."""
    return slate_from_text(slate_to_text(slate)) == slate

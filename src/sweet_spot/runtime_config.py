"""Runtime configuration loader (config-first, flag-overrides)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sweet_spot.errors import SweetSpotError
from sweet_spot.presets import DEFAULT_PRESET_ID
from sweet_spot.rules import MISSING_CONTEXT_PENALTY
from sweet_spot.simulation.runner import MODE_ITERATIONS

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "runtime.toml"
DEFAULT_LOCAL_OVERRIDE_PATH = Path(__file__).resolve().parents[2] / "config" / "runtime.local.toml"


@dataclass(frozen=True)
class RuntimeConfig:
    """Materialized runtime configuration."""

    config_path: Path | None
    default_preset: str = DEFAULT_PRESET_ID
    missing_context_penalty: float = MISSING_CONTEXT_PENALTY
    simulator_mode: str = "standard"
    simulator_max_combinations: int = 100
    simulator_min_win_rate: float = 0.12
    simulator_min_edge: float = 0.03
    simulator_min_sharpe: float = 0.5
    simulator_use_correlations: bool = True
    simulator_seed: int | None = None
    log_level: str = "WARNING"


_CURRENT_RUNTIME_CONFIG: RuntimeConfig | None = None


def set_current_runtime_config(config: RuntimeConfig | None) -> None:
    global _CURRENT_RUNTIME_CONFIG
    _CURRENT_RUNTIME_CONFIG = config


def current_runtime_config() -> RuntimeConfig:
    config = _CURRENT_RUNTIME_CONFIG
    if config is not None:
        return config
    loaded = load_runtime_config() if DEFAULT_CONFIG_PATH.exists() else RuntimeConfig(None)
    set_current_runtime_config(loaded)
    return loaded


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in overlay.items():
        existing = out.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            out[key] = _deep_merge(existing, value)
        else:
            out[key] = value
    return out


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        payload = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SweetSpotError(f"failed reading runtime config: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise SweetSpotError(f"invalid runtime config TOML: {path}") from exc
    return payload


def _as_table(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SweetSpotError(f"runtime config section [{key}] must be a table")
    return value


def _as_str(value: Any, *, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return default


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _as_int(value: Any, *, default: int | None) -> int | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def load_runtime_config(config_path: Path | None = None) -> RuntimeConfig:
    """Load runtime config from `config/runtime.toml` plus optional local override."""
    source = (config_path or DEFAULT_CONFIG_PATH).expanduser().resolve()
    if not source.exists():
        raise SweetSpotError(f"runtime config file not found: {source}")

    payload = _read_toml(source)
    if source == DEFAULT_CONFIG_PATH and DEFAULT_LOCAL_OVERRIDE_PATH.exists():
        payload = _deep_merge(payload, _read_toml(DEFAULT_LOCAL_OVERRIDE_PATH))

    engine = _as_table(payload, "engine")
    simulator = _as_table(payload, "simulator")
    logging_section = _as_table(payload, "logging")

    mode = _as_str(simulator.get("mode"), default="standard").lower()
    if mode not in MODE_ITERATIONS:
        raise SweetSpotError(f"runtime config [simulator] mode is invalid: {mode}")

    return RuntimeConfig(
        config_path=source,
        default_preset=_as_str(engine.get("default_preset"), default=DEFAULT_PRESET_ID),
        missing_context_penalty=_as_float(
            engine.get("missing_context_penalty"), default=MISSING_CONTEXT_PENALTY
        ),
        simulator_mode=mode,
        simulator_max_combinations=_as_int(simulator.get("max_combinations"), default=100)
        or 100,
        simulator_min_win_rate=_as_float(simulator.get("min_win_rate"), default=0.12),
        simulator_min_edge=_as_float(simulator.get("min_edge"), default=0.03),
        simulator_min_sharpe=_as_float(simulator.get("min_sharpe"), default=0.5),
        simulator_use_correlations=_as_bool(simulator.get("use_correlations"), default=True),
        simulator_seed=_as_int(simulator.get("seed"), default=None),
        log_level=_as_str(logging_section.get("level"), default="WARNING").upper(),
    )

"""Application settings for sweet-spot."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sweet_spot.runtime_config import current_runtime_config
from sweet_spot.simulation.runner import SimulatorConfig


class Settings(BaseSettings):
    """Environment-overridable engine and simulator settings."""

    model_config = SettingsConfigDict(
        env_prefix="SWEET_SPOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    default_preset: str = "balanced"
    missing_context_penalty: float = -2.0
    simulator_mode: str = "standard"
    simulator_max_combinations: int = Field(default=100, ge=1)
    simulator_min_win_rate: float = Field(default=0.12, ge=0.0, le=1.0)
    simulator_min_edge: float = 0.03
    simulator_min_sharpe: float = 0.5
    simulator_use_correlations: bool = True
    simulator_seed: int | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_runtime(cls) -> "Settings":
        """Settings seeded from runtime config; `SWEET_SPOT_*` env vars still win."""
        runtime = current_runtime_config()
        defaults = {
            "default_preset": runtime.default_preset,
            "missing_context_penalty": runtime.missing_context_penalty,
            "simulator_mode": runtime.simulator_mode,
            "simulator_max_combinations": runtime.simulator_max_combinations,
            "simulator_min_win_rate": runtime.simulator_min_win_rate,
            "simulator_min_edge": runtime.simulator_min_edge,
            "simulator_min_sharpe": runtime.simulator_min_sharpe,
            "simulator_use_correlations": runtime.simulator_use_correlations,
            "simulator_seed": runtime.simulator_seed,
            "log_level": runtime.log_level,
        }
        from_env = cls()
        explicit = from_env.model_fields_set
        merged = {
            key: getattr(from_env, key) if key in explicit else value
            for key, value in defaults.items()
        }
        return cls.model_validate(merged)

    def simulator_config(
        self,
        *,
        mode: str | None = None,
        max_combinations: int | None = None,
    ) -> SimulatorConfig:
        """Simulator thresholds with optional per-run overrides."""
        return SimulatorConfig(
            mode=(mode or self.simulator_mode).lower(),  # type: ignore[arg-type]
            min_win_rate=self.simulator_min_win_rate,
            min_edge=self.simulator_min_edge,
            min_sharpe=self.simulator_min_sharpe,
            max_combinations=(
                max_combinations if max_combinations is not None
                else self.simulator_max_combinations
            ),
            use_correlations=self.simulator_use_correlations,
        )

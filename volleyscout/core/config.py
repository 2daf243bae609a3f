"""Configuration management for VolleyScout."""

import os
from pathlib import Path
from typing import Optional

import yaml
from platformdirs import user_data_dir
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from volleyscout.core.errors import VolleyScoutError

CONFIG_ENV_VAR = "VOLLEYSCOUT_CONFIG"


# =============================================================================
# Nested Configuration Classes
# =============================================================================


class ScoringConfig(BaseModel):
    """Set and match closing rules."""

    set_target: int = Field(default=25, ge=1)
    deciding_set_target: int = Field(default=15, ge=1)  # Played when sets are level at best_of - 1
    min_margin: int = Field(default=2, ge=1)
    best_of: int = 5
    max_substitutions: int = Field(default=6, ge=0)  # Per team, per set

    @field_validator("best_of")
    @classmethod
    def _best_of_is_odd(cls, value: int) -> int:
        if value <= 0 or value % 2 == 0:
            raise ValueError("best_of must be a positive odd number")
        return value

    @property
    def sets_to_win(self) -> int:
        return self.best_of // 2 + 1

    def target_for(self, set_number: int) -> int:
        """Point target for the given set number."""
        if set_number == self.best_of:
            return self.deciding_set_target
        return self.set_target


class ReportConfig(BaseModel):
    """Report and query execution configuration."""

    query_timeout_seconds: float = 30.0
    max_workers: int = Field(default=4, ge=1)
    efficiency_digits: int = 3


# =============================================================================
# Main Configuration Class
# =============================================================================


class VolleyScoutConfig(BaseSettings):
    """Configuration settings for VolleyScout."""

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    # Match file store
    data_dir: Path = Field(
        default_factory=lambda: Path(user_data_dir("volleyscout")) / "matches"
    )

    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="VOLLEYSCOUT_",
        env_nested_delimiter="__",  # Allows VOLLEYSCOUT_SCORING__SET_TARGET
    )

    # -------------------------------------------------------------------------
    # YAML Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: Path) -> "VolleyScoutConfig":
        """Load configuration from YAML file.

        A relative ``data_dir`` is resolved against the file's directory, so a
        project-level ``volleyscout.yaml`` can keep its matches beside it.
        """
        with open(path) as f:
            data = yaml.safe_load(f)
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise VolleyScoutError(
                f"Config file {path} must contain a mapping, got {type(data).__name__}",
                hint="Use 'key: value' entries such as 'scoring:' and 'report:'",
            )
        data_dir = data.get("data_dir")
        if data_dir is not None and not Path(data_dir).expanduser().is_absolute():
            data["data_dir"] = Path(path).parent / data_dir
        return cls(**data)

    @classmethod
    def find_and_load(cls) -> "VolleyScoutConfig":
        """Find and load config from standard locations.

        ``VOLLEYSCOUT_CONFIG`` names an explicit file and wins over the
        working directory and user config locations.
        """
        explicit = os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            path = Path(explicit).expanduser()
            if not path.exists():
                raise VolleyScoutError(
                    f"Config file from {CONFIG_ENV_VAR} not found: {path}",
                    hint=f"Unset {CONFIG_ENV_VAR} or point it at an existing YAML file",
                )
            return cls.from_yaml(path)

        locations = [
            Path.cwd() / "volleyscout.yaml",
            Path.home() / ".config" / "volleyscout" / "volleyscout.yaml",
        ]

        for path in locations:
            if path.exists():
                return cls.from_yaml(path)

        # Fall back to defaults + environment variables
        return cls()


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[VolleyScoutConfig] = None


def get_config() -> VolleyScoutConfig:
    """Process-wide configuration, loaded on first use.

    Supplies the default ``ScoringConfig`` for matches and match files that
    do not carry their own rules, the report runner limits and the match
    store directory.
    """
    global _config
    if _config is None:
        _config = VolleyScoutConfig.find_and_load()
    return _config


def set_config(config: VolleyScoutConfig) -> None:
    """Replace the process-wide configuration (the CLI ``--config`` option)."""
    global _config
    _config = config


def reset_config() -> None:
    """Drop the loaded configuration so the next access reloads it."""
    global _config
    _config = None

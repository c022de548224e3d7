"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .enums import LogFormat
from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class DispatchConfig(BaseModel):
    # None = one task per event with no upper bound
    max_concurrent_handlers: int | None = Field(default=None, ge=1)
    drain_timeout_seconds: float = Field(default=5.0, ge=0)  # Wait for in-flight handlers on exit


class DeliveryConfig(BaseModel):
    max_queue_size: int = Field(default=0, ge=0)  # 0 = unbounded


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level settings.

    Loaded from TOML config files, overridden by environment variables
    (``GATEWAY_EVENTS_DISPATCH__MAX_CONCURRENT_HANDLERS=32``).
    """

    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "GATEWAY_EVENTS_", "env_nested_delimiter": "__"}

    def validate_runtime(self) -> None:
        """Reject settings pydantic cannot check on its own."""
        level = self.observability.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(f"Unknown log level: {self.observability.log_level!r}")


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides merged on top, section by section.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        import tomli

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc

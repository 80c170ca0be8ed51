"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .enums import LogFormat


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE
    metrics_port: int = 0  # 0 disables the prometheus HTTP server


class StoreConfig(BaseModel):
    unsubscribe_on_error: bool = False  # Drop a processor after it raises


class ProcessorConfig(BaseModel):
    physical: bool = True
    graphics: bool = True
    ink_used: bool = True
    dedupe_ink: bool = True  # False selects the naive aggregator


class DrawingConfig(BaseModel):
    side_length: float = Field(default=100.0, gt=0)
    polygon_sides: int = Field(default=4, ge=3)


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    processors: ProcessorConfig = Field(default_factory=ProcessorConfig)
    drawing: DrawingConfig = Field(default_factory=DrawingConfig)

    model_config = {"env_prefix": "TURTLE_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides merged on top, one section at a time.

    Raises:
        ConfigError: The file is not valid TOML or fails validation.
    """
    from .errors import ConfigError

    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Malformed config {path}: {exc}") from exc

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

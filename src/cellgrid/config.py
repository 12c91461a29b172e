"""Engine configuration loaded from ``cellgrid.yaml``, with defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from cellgrid.errors import ConfigError
from cellgrid.grid import MIN_FONT_SIZE, Alignment

CONFIG_FILENAME = "cellgrid.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "rows": 10,
    "cols": 10,
    "max_cols": 702,  # ZZ
    "font_size": 12,
    "font_color": "#000000",
    "alignment": "left",
    "font_size_step": 2,
    "min_font_size": MIN_FONT_SIZE,
    "history_max_depth": None,
    "resize_preserves_content": False,
    "log_dir": None,
    "log_fsync": False,
}


class EngineConfig(BaseModel):
    """Validated engine settings."""

    rows: int = Field(default=10, ge=1)
    cols: int = Field(default=10, ge=1)
    max_cols: int = Field(default=702, ge=1)
    font_size: int = Field(default=12, ge=MIN_FONT_SIZE)
    font_color: str = "#000000"
    alignment: Alignment = Alignment.left
    font_size_step: int = Field(default=2, ge=1)
    min_font_size: int = Field(default=MIN_FONT_SIZE, ge=MIN_FONT_SIZE)
    history_max_depth: int | None = Field(default=None, ge=1)
    resize_preserves_content: bool = False
    log_dir: str | None = None
    log_fsync: bool = False

    @model_validator(mode="after")
    def _check_widths(self) -> "EngineConfig":
        if self.cols > self.max_cols:
            raise ValueError(f"cols ({self.cols}) exceeds max_cols ({self.max_cols})")
        if self.font_size < self.min_font_size:
            raise ValueError(
                f"font_size ({self.font_size}) is below min_font_size ({self.min_font_size})"
            )
        return self


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file, with defaults.

    Args:
        path: A ``cellgrid.yaml`` file, or a directory containing one.
            ``None`` returns the defaults.

    Returns:
        Merged configuration dict.  Unknown keys are kept.

    Raises:
        ConfigError: If the file cannot be read or is not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        return config
    config_path = Path(path)
    if config_path.is_dir():
        config_path = config_path / CONFIG_FILENAME
    if not config_path.exists():
        return config
    try:
        user_config = yaml.safe_load(config_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(str(exc), path=str(config_path)) from exc
    if not isinstance(user_config, dict):
        raise ConfigError("configuration must be a mapping", path=str(config_path))
    config.update(user_config)
    return config


def build_config(path: Path | str | None = None, **overrides: Any) -> EngineConfig:
    """Load, merge *overrides*, and validate into an :class:`EngineConfig`.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    raw = load_config(path)
    raw.update({k: v for k, v in overrides.items() if v is not None})
    known = {k: v for k, v in raw.items() if k in EngineConfig.model_fields}
    try:
        return EngineConfig.model_validate(known)
    except ValidationError as exc:
        raise ConfigError(str(exc), path=None if path is None else str(path)) from exc


def dump_config(config: EngineConfig) -> str:
    """Render *config* as YAML."""
    return yaml.safe_dump(config.model_dump(mode="json"), sort_keys=True)

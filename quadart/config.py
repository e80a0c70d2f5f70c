"""Decomposition configuration.

Settings are read from the ``[quadart]`` table of a TOML file:

    [quadart]
    min_leaf_size = 12
    error_threshold = 420
    rounded_corner = 0
    max_working_size = 1024
    step_interval = 0.001
    render_interval = 0.2
    initial_color = [0, 0, 0]

The file is resolved from the QUADART_CONFIG environment variable, then an
explicit path, then ``quadart.toml`` in the working directory or the home
directory. Without a file the defaults above apply.
"""

from __future__ import annotations

import logging
import os
from typing import Any, cast

# TOML loading for Python 3.11+ and older
try:
    import tomllib  # type: ignore[import-not-found, unused-ignore]
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found, no-redef, unused-ignore]

from pydantic import BaseModel, Field, field_validator, model_validator

from quadart.components.quad import Color

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "QUADART_CONFIG"
CONFIG_FILENAME = "quadart.toml"


class QuadArtConfig(BaseModel):
    """Parameters of one decomposition run.

    Attributes:
        min_leaf_size: Quads with a side below this are terminal
        error_threshold: Splitting stops once the worst splittable quad's
            error is below this
        rounded_corner: Corner radius for renderers; ignored by the engine
        max_working_size: The image is scaled to fit within this many pixels
            on each side before sampling
        step_interval: Seconds between model-update ticks
        render_interval: Seconds between view-update ticks
        initial_color: previous_color of the root quad
    """

    model_config = {"frozen": True}

    min_leaf_size: int = Field(default=12, gt=0)
    error_threshold: float = Field(default=420.0, ge=0.0)
    rounded_corner: float = Field(default=0.0, ge=0.0)
    max_working_size: int = Field(default=1024, gt=0)
    step_interval: float = Field(default=0.001, ge=0.0)
    render_interval: float = Field(default=0.2, ge=0.0)
    initial_color: Color = (0, 0, 0)

    @field_validator("initial_color")
    @classmethod
    def check_channels(cls, value: Color) -> Color:
        if any(not 0 <= c <= 255 for c in value):
            raise ValueError(f"color channels must be in [0, 255], got {value}")
        return value

    @model_validator(mode="after")
    def check_intervals(self) -> QuadArtConfig:
        if self.render_interval < self.step_interval:
            raise ValueError(
                f"render_interval ({self.render_interval}) must not be shorter "
                f"than step_interval ({self.step_interval})"
            )
        return self

    def replace(self, **changes: Any) -> QuadArtConfig:
        """Return a validated copy with some fields changed."""
        return QuadArtConfig(**{**self.model_dump(), **changes})


def resolve_config_path(config_path: str | None = None) -> str | None:
    """Resolve configuration path from env, explicit path, or defaults."""
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        return env_config
    if config_path:
        return config_path
    candidates = [
        CONFIG_FILENAME,
        os.path.expanduser(f"~/{CONFIG_FILENAME}"),
    ]
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return None


def load_config(config_path: str | None = None) -> QuadArtConfig:
    """Load the ``[quadart]`` table, falling back to defaults without a file.

    Raises:
        FileNotFoundError: If QUADART_CONFIG or config_path names a missing file
        tomllib.TOMLDecodeError: If the file is not valid TOML
        pydantic.ValidationError: If a setting is out of range
    """
    resolved_path = resolve_config_path(config_path)
    if resolved_path is None:
        return QuadArtConfig()
    if not os.path.exists(resolved_path):
        raise FileNotFoundError(
            f"Config file not found at {resolved_path}. "
            f"Set {CONFIG_ENV_VAR} or create {CONFIG_FILENAME}"
        )

    with open(resolved_path, "rb") as f:
        config = cast(dict[str, Any], tomllib.load(f))
    settings = cast(dict[str, Any], config.get("quadart", {}))
    logger.info("Loaded configuration from %s", resolved_path)
    return QuadArtConfig(**settings)

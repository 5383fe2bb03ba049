"""Patch engine settings.

Settings are loaded from a YAML file with this location priority:
1. Explicit path passed to PatchConfigLoader
2. PATCH_MCP_CONFIG environment variable
3. Standard location: ~/.patch-mcp/config.yml
4. Built-in defaults (if no config file found)

Example config file:
```yaml
whitespace:
  preserve_indentation: true
  trim_trailing_whitespace: false

similarity_threshold: 0.85
block_chunk_size: 200
diff_search_window: 100

protected_markers:
  - TODO
  - IMPORTANT
  - DO NOT EDIT

working_dir: ~/projects/app
allow_outside_working_dir: false
```
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .models import WhitespaceConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PATCH_MCP_CONFIG"
STANDARD_CONFIG_PATH = Path("~/.patch-mcp/config.yml")


class PatchSettings(BaseModel):
    """Engine-wide thresholds, limits and defaults."""

    whitespace: WhitespaceConfig = Field(
        default_factory=WhitespaceConfig,
        description="Defaults that per-operation whitespace configs are merged over",
    )

    # Matching
    similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    block_chunk_size: int = Field(default=100, gt=0, description="Block strategy chunk size (characters)")
    diff_search_window: int = Field(
        default=50, ge=0, description="Lines searched above/below a hunk's expected position"
    )
    max_pattern_tokens: int = Field(
        default=2000, gt=0, description="Upper bound on tokens in a synthesized search pattern"
    )

    # Validation
    block_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    diff_similarity_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    hunk_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    max_line_length: int = Field(default=10000, gt=0)
    max_line_growth_factor: float = Field(
        default=2.0, gt=0.0, description="A replacement line may be at most this many times longer"
    )
    block_length_bounds: tuple[float, float] = Field(
        default=(0.5, 2.0), description="Allowed (min, max) length ratio of a substituted chunk"
    )
    complete_min_length_ratio: float = Field(default=0.5, ge=0.0)

    protected_markers: list[str] = Field(
        default_factory=lambda: ["TODO", "IMPORTANT"],
        description="Lines containing any marker are never deleted or replaced by line patches",
    )

    # File access
    max_file_size_bytes: int = Field(default=50 * 1024 * 1024, gt=0)
    encoding: str = "utf-8"
    working_dir: Path | None = Field(
        default=None, description="Base directory for relative paths (None = process cwd)"
    )
    allow_outside_working_dir: bool = True

    @field_validator("working_dir")
    @classmethod
    def expand_working_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @model_validator(mode="after")
    def validate_length_bounds(self) -> PatchSettings:
        low, high = self.block_length_bounds
        if low < 0 or high < low:
            raise ValueError(
                f"block_length_bounds must satisfy 0 <= min <= max, got {self.block_length_bounds}"
            )
        return self


class PatchConfigLoader:
    """Loader for ``PatchSettings`` from YAML.

    Usage:
        ```python
        loader = PatchConfigLoader()
        settings = loader.load_config()
        engine = PatchEngine(settings=settings)
        ```

    The loaded settings are cached; call ``load_config()`` once during startup.
    """

    def __init__(self, config_path: str | Path | None = None):
        """Initialize config loader with optional explicit path.

        Args:
            config_path: Explicit path to config file (optional).
                If not provided, uses environment variable or standard location.
        """
        self._settings: PatchSettings | None = None
        self._explicit_path = Path(config_path).expanduser() if config_path else None

    def get_config_path(self) -> Path | None:
        """Determine config file path using priority order.

        Returns:
            Path to config file, or None if file doesn't exist
        """
        if self._explicit_path:
            if self._explicit_path.exists():
                return self._explicit_path
            logger.warning(f"Explicit patch config path does not exist: {self._explicit_path}")
            return None

        env_path_str = os.getenv(CONFIG_ENV_VAR)
        if env_path_str:
            env_path = Path(env_path_str).expanduser()
            if env_path.exists():
                return env_path
            logger.warning(f"{CONFIG_ENV_VAR} path does not exist: {env_path}")
            return None

        standard_path = STANDARD_CONFIG_PATH.expanduser()
        if standard_path.exists():
            return standard_path

        return None

    def load_config(self) -> PatchSettings:
        """Load and validate settings.

        Returns:
            Validated PatchSettings (defaults if no config file found)

        Raises:
            ValueError: If config file is invalid or fails validation
        """
        if self._settings is not None:
            return self._settings

        config_path = self.get_config_path()

        if config_path is None:
            logger.info("No patch config file found, using built-in defaults")
            self._settings = PatchSettings()
            return self._settings

        logger.info(f"Loading patch config from: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)

            # An empty file means defaults
            if raw_config is None:
                raw_config = {}
            if not isinstance(raw_config, dict):
                raise ValueError("Config file must contain a YAML dictionary")

            settings = PatchSettings(**raw_config)
        except (yaml.YAMLError, ValueError) as e:
            raise ValueError(f"Failed to load patch config from {config_path}: {e}") from e

        logger.info(
            f"Loaded patch config: similarity_threshold={settings.similarity_threshold}, "
            f"protected_markers={settings.protected_markers}"
        )
        self._settings = settings
        return settings

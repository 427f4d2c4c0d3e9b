"""Configuration parser for the shell.

Parses and validates an optional YAML settings file.
"""

from __future__ import annotations

import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, field_validator

from scriptshell.lib.loader import CHUNK_SIZE, DEFAULT_CAPACITY

WORD_BREAK_CHARACTERS = " \t\n\"\\'`@$><=;,|&{("


class ShellConfig(BaseModel):
    """Shell settings."""
    prompt: str = ">> "
    banner: bool = True
    history_length: int = 1000
    chunk_size: int = CHUNK_SIZE
    default_capacity: int = DEFAULT_CAPACITY
    word_break_characters: str = WORD_BREAK_CHARACTERS

    @field_validator('chunk_size', 'default_capacity')
    @classmethod
    def positive_size(cls, v: int) -> int:
        """Ensure loader sizes are usable."""
        if v <= 0:
            raise ValueError(f"Size must be positive, got {v}")
        return v

    @field_validator('history_length')
    @classmethod
    def valid_history_length(cls, v: int) -> int:
        """Allow -1 (unbounded) or a non-negative length."""
        if v < -1:
            raise ValueError(f"History length must be -1 or greater, got {v}")
        return v

    @field_validator('word_break_characters')
    @classmethod
    def keep_separator(cls, v: str) -> str:
        """Dotted chains must reach the completer whole."""
        if '.' in v:
            raise ValueError("Word break characters must not contain '.'")
        return v


class ConfigParser:
    """Parse and validate shell configuration."""

    def __init__(self, config_path: Union[str, Path]):
        """Initialize parser with config file path.

        Args:
            config_path: Path to the YAML settings file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self.config: Optional[ShellConfig] = None
        self._raw_config: Optional[Dict[str, Any]] = None

    def parse(self) -> ShellConfig:
        """Parse and validate configuration.

        Returns:
            Validated configuration object

        Raises:
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If validation fails
        """
        with open(self.config_path) as f:
            self._raw_config = yaml.safe_load(f) or {}

        if not isinstance(self._raw_config, dict):
            raise ValueError(
                f"Configuration must be a mapping, got {type(self._raw_config).__name__}"
            )

        self.config = ShellConfig(**self._raw_config)
        return self.config


def load_config(config_path: Optional[Union[str, Path]] = None) -> ShellConfig:
    """Load shell configuration.

    Args:
        config_path: Path to a YAML file, or None for defaults

    Returns:
        Validated configuration

    Example:
        >>> config = load_config("scriptshell.yaml")
        >>> config.prompt
        '>> '
    """
    if config_path is None:
        return ShellConfig()
    return ConfigParser(config_path).parse()

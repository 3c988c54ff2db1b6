"""Configuration system for back-me-up.

This module provides TOML-based configuration loading, validation,
and the immutable session configuration record.
"""

from .loader import (
    ConfigError,
    apply_overrides,
    find_config_file,
    generate_example_config,
    load_config,
)
from .schema import SessionConfig

__all__ = [
    "SessionConfig",
    "load_config",
    "apply_overrides",
    "find_config_file",
    "generate_example_config",
    "ConfigError",
]

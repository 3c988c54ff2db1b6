"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import dataclasses
import tomllib
from pathlib import Path
from typing import Any

from .schema import SessionConfig


class ConfigError(Exception):
    """Configuration loading or validation error."""

    exit_code = 64


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "back-me-up" / "config.toml",
    Path("/etc/back-me-up/config.toml"),
]

# (table, key, attribute, type)
_FIELDS = [
    ("destination", "path", "destination", str),
    ("destination", "ssh_host", "ssh_host", str),
    ("destination", "ssh_port", "ssh_port", int),
    ("destination", "ssh_user", "ssh_user", str),
    ("destination", "ssh_key", "ssh_key", str),
    ("backup", "hostname", "hostname", str),
    ("backup", "source", "source", str),
    ("backup", "assume_yes", "assume_yes", bool),
    ("backup", "dry_run", "dry_run", bool),
    ("backup", "max_size_mb", "max_size_mb", int),
    ("backup", "last_backup", "last_backup", str),
    ("backup", "filter_file", "filter_file", str),
    ("backup", "ionice", "ionice", bool),
    ("backup", "rsync", "rsync", str),
    ("backup", "strict", "strict", bool),
    ("backup", "keep_filter_file", "keep_filter_file", bool),
    ("logging", "syslog", "syslog", bool),
    ("logging", "address", "syslog_address", str),
    ("logging", "facility", "syslog_facility", str),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _check_type(table: str, key: str, value: Any, expected: type) -> Any:
    # bool is a subclass of int, so "port = true" must not pass as an int
    if expected is int and isinstance(value, bool):
        raise ConfigError(f"[{table}] {key} must be an integer, not a boolean")
    if not isinstance(value, expected):
        raise ConfigError(
            f"[{table}] {key} must be of type {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _parse_tables(data: dict[str, Any]) -> dict[str, Any]:
    """Pick the known settings out of the parsed TOML document."""
    values = {}
    for table, key, attribute, expected in _FIELDS:
        section = data.get(table, {})
        if not isinstance(section, dict):
            raise ConfigError(f"[{table}] must be a table")
        if key in section:
            values[attribute] = _check_type(table, key, section[key], expected)
    return values


def validate_config(config: SessionConfig, require_destination: bool = True) -> list[str]:
    """Validate configuration and return list of warnings.

    Raises:
        ConfigError: If a setting can never work
    """
    warnings = []

    if require_destination and not config.destination:
        raise ConfigError("No backup destination configured ([destination] path or -d)")

    if config.max_size_mb is not None and config.max_size_mb <= 0:
        raise ConfigError(f"max_size_mb must be positive, got {config.max_size_mb}")

    if config.ssh_port is not None and not 0 < config.ssh_port < 65536:
        raise ConfigError(f"ssh_port out of range: {config.ssh_port}")

    if not config.remote and (config.ssh_user or config.ssh_port or config.ssh_key):
        warnings.append("ssh_user/ssh_port/ssh_key are ignored without ssh_host")

    if config.source != "/":
        warnings.append(
            f"Source is '{config.source}' - the filter rules are written for '/'"
        )

    return warnings


def load_config(
    path: Path | str | None = None,
    require_destination: bool = True,
    **overrides: Any,
) -> tuple[SessionConfig, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file, or None to use defaults only
        require_destination: Fail when no destination is configured
        overrides: Settings that win over the file (None values are ignored)

    Returns:
        Tuple of (SessionConfig object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    values = {}
    if path is not None:
        path = Path(path)
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML syntax: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}")
        values = _parse_tables(data)

    config = apply_overrides(SessionConfig(**values), **overrides)
    warnings = validate_config(config, require_destination)
    return config, warnings


def apply_overrides(config: SessionConfig, **overrides: Any) -> SessionConfig:
    """Return a copy of config with the non-None overrides applied."""
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    try:
        return dataclasses.replace(config, **changes)
    except TypeError as e:
        raise ConfigError(f"Unknown setting: {e}")


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# back-me-up configuration
# Command line options override these settings.

[destination]
path = "/mnt/backup"          # directory holding BACKUP-<host>-<date> generations
# ssh_host = "nas.example.org:2222"
# ssh_user = "backup"
# ssh_key = "~/.ssh/id_backup"

[backup]
# hostname = "myhost"         # default: this system's host name
source = "/"
assume_yes = false
dry_run = false
# max_size_mb = 1024          # skip files larger than this
# last_backup = "/mnt/backup/BACKUP-myhost-2024-01-31"
# filter_file = "/etc/back-me-up/rules"
ionice = true
rsync = "rsync"
strict = false                # exit non-zero when rsync fails
keep_filter_file = false

[logging]
syslog = true
address = "/dev/log"
facility = "local4"
"""

"""Shared CLI utilities and argument parsers."""

import argparse

from ..config import SessionConfig, find_config_file, load_config

# Command line options that map one to one onto SessionConfig fields
SESSION_OPTIONS = (
    "destination",
    "ssh_host",
    "ssh_user",
    "ssh_key",
    "hostname",
    "last_backup",
    "filter_file",
    "assume_yes",
    "max_size_mb",
    "dry_run",
    "strict",
    "keep_filter_file",
    "ionice",
    "syslog",
)


def create_global_parser() -> argparse.ArgumentParser:
    """Create a parser with global options that can be used as a parent."""
    parser = argparse.ArgumentParser(add_help=False)
    add_verbosity_args(parser)
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )
    return parser


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_destination_args(parser: argparse.ArgumentParser) -> None:
    """Add the options locating the backup destination."""
    group = parser.add_argument_group("Destination options")
    group.add_argument(
        "-d",
        "--destination",
        metavar="BASE_DIR",
        help="Directory that holds the backup generations",
    )
    group.add_argument(
        "-s",
        "--ssh-host",
        metavar="HOST[:PORT]",
        help="Remote SSH host (and port) for the backup",
    )
    group.add_argument(
        "-u",
        "--ssh-user",
        metavar="USER",
        help="Remote user (only when the destination is remote)",
    )
    group.add_argument(
        "--ssh-key",
        metavar="FILE",
        help="SSH private key for the remote host",
    )
    group.add_argument(
        "--hostname",
        help="Host name used in generation names (default: this host)",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def session_overrides(args: argparse.Namespace) -> dict:
    """Collect the config settings given on the command line.

    Options the user did not pass are None and leave the file's value alone.
    """
    return {name: getattr(args, name, None) for name in SESSION_OPTIONS}


def load_session_config(
    args: argparse.Namespace, require_destination: bool = True
) -> tuple[SessionConfig, list[str]]:
    """Build the session config from the config file and the command line.

    Raises:
        ConfigError: If the config file or the options are invalid
    """
    config_path = find_config_file(getattr(args, "config", None))
    return load_config(config_path, require_destination, **session_overrides(args))

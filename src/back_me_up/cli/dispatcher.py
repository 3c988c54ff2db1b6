"""CLI dispatcher with implicit "run" detection.

back-me-up can be called with options only (``back-me-up -d /backup -y``).
Without a subcommand the arguments go to ``run``.
"""

import argparse
import sys
from typing import Callable

from .common import add_destination_args, create_global_parser

# Known subcommands
SUBCOMMANDS = frozenset({"run", "list", "filters", "config"})


def is_implicit_run(argv: list[str]) -> bool:
    """Detect if arguments should be handled by the run command.

    Args:
        argv: Command line arguments (without program name)

    Returns:
        True if the first argument is not a subcommand
    """
    if not argv:
        return False

    first = argv[0]

    # Explicit subcommand
    if first in SUBCOMMANDS:
        return False

    # Help/version flags - let the main parser handle them
    if first in {"-h", "--help", "-V", "--version"}:
        return False

    return True


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="back-me-up",
        description="Incremental, hard-linked rsync backups of this host",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )
    global_parser = create_global_parser()

    # run command
    run_parser = subparsers.add_parser(
        "run",
        parents=[global_parser],
        help="Back up this host into today's generation",
        description="Create or update today's generation, hard-linked against the latest one",
    )
    add_destination_args(run_parser)
    run_parser.add_argument(
        "-l",
        "--last-backup",
        metavar="LAST_BACKUP",
        help="Directory containing the latest backup of this system",
    )
    run_parser.add_argument(
        "-i",
        "--include-file",
        dest="filter_file",
        metavar="FILE",
        help="rsync include/exclude rule file replacing the built-in rules",
    )
    run_parser.add_argument(
        "-y",
        "--yes",
        dest="assume_yes",
        action="store_true",
        default=None,
        help='Assume "yes" to all answers',
    )
    run_parser.add_argument(
        "-m",
        "--max-size",
        dest="max_size_mb",
        type=int,
        metavar="MB",
        help="Maximum file size to be backed up, in MB",
    )
    run_parser.add_argument(
        "-p",
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=None,
        help='"Pretend" run: just show what would be done',
    )
    run_parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Exit with a failure status when rsync fails",
    )
    run_parser.add_argument(
        "--keep-filter-file",
        action="store_true",
        default=None,
        help="Keep the temporary rule file for inspection",
    )
    run_parser.add_argument(
        "--no-ionice",
        dest="ionice",
        action="store_false",
        default=None,
        help="Do not run rsync under ionice",
    )
    run_parser.add_argument(
        "--no-syslog",
        dest="syslog",
        action="store_false",
        default=None,
        help="Log to the terminal only",
    )

    # list command
    list_parser = subparsers.add_parser(
        "list",
        parents=[global_parser],
        help="Show this host's generations",
        description="List generations on the destination and the one used as hard-link base",
    )
    add_destination_args(list_parser)

    # filters command
    filters_parser = subparsers.add_parser(
        "filters",
        parents=[global_parser],
        help="Show the filter rules",
        description="Print the rsync include/exclude rules a backup would use",
    )
    filters_parser.add_argument(
        "-i",
        "--include-file",
        dest="filter_file",
        metavar="FILE",
        help="Validate and show this rule file instead of the built-in rules",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        parents=[global_parser],
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"back-me-up {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 64

    handlers: dict[str, Callable] = {
        "run": cmd_run,
        "list": cmd_list,
        "filters": cmd_filters,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 64


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    from .list_cmd import execute_list

    return execute_list(args)


def cmd_filters(args: argparse.Namespace) -> int:
    """Execute filters command."""
    from .filters_cmd import execute_filters

    return execute_filters(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for back-me-up CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    if is_implicit_run(argv):
        argv = ["run", *argv]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)

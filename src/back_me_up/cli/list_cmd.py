"""List command: show this host's generations."""

import argparse
import logging
import posixpath

from rich.console import Console
from rich.table import Table

from .. import parse_generation_name
from ..__logger__ import create_logger
from ..config import ConfigError
from ..core.generations import find_prior_generation, generation_path
from ..endpoint import GenerationOrder, choose_endpoint
from .common import get_log_level, load_session_config

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(log_level, syslog=False)

    try:
        config, _ = load_session_config(args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return e.exit_code

    endpoint = choose_endpoint(config)
    try:
        root = endpoint.config["path"]
        generations = endpoint.list_generations(root, config.hostname, GenerationOrder.NAME)
        if config.last_backup:
            prior = posixpath.join(root, posixpath.basename(config.last_backup.rstrip("/")))
        else:
            prior = find_prior_generation(endpoint, root, config.hostname, config.today)
    finally:
        endpoint.close()

    today_path = generation_path(root, config.hostname, config.today)
    table = Table(title=f"Generations of {config.hostname} on {endpoint!r}")
    table.add_column("Generation")
    table.add_column("Date")
    table.add_column("Note")
    for path in generations:
        name = posixpath.basename(path)
        parsed = parse_generation_name(name)
        note = ""
        if path == today_path:
            note = "today"
        elif path == prior:
            note = "hard-link base"
        table.add_row(name, parsed[1].isoformat() if parsed else "?", note)

    Console().print(table)
    if not generations:
        print("No generations found.")
    return 0

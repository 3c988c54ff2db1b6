"""Filters command: print the rsync rules a backup would use."""

import argparse
import logging

from ..__logger__ import create_logger
from ..core import filters
from .common import get_log_level

logger = logging.getLogger(__name__)


def execute_filters(args: argparse.Namespace) -> int:
    """Execute the filters command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(get_log_level(args), syslog=False)

    filter_file = getattr(args, "filter_file", None)
    if filter_file:
        try:
            rules = filters.load_rules(filter_file)
        except (OSError, ValueError) as e:
            logger.error("Invalid filter file %s: %s", filter_file, e)
            return 1
    else:
        rules = filters.DEFAULT_RULES

    print(filters.render_rules(rules), end="")
    return 0

"""Run command: back up this host into today's generation."""

import argparse
import logging
import sys
import time

from .. import __util__
from ..__logger__ import create_logger
from ..config import ConfigError
from ..core.session import BackupSession
from ..endpoint import choose_endpoint
from .common import get_log_level, load_session_config

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    log_level = get_log_level(args)

    try:
        config, warnings = load_session_config(args)
    except ConfigError as e:
        create_logger(log_level, syslog=False)
        logger.error("Configuration error: %s", e)
        return e.exit_code

    try:
        create_logger(
            log_level,
            syslog=config.syslog,
            address=config.syslog_address,
            facility=config.syslog_facility,
        )
    except __util__.LoggingUnavailable as e:
        print(f"{e}\nAborting.", file=sys.stderr)
        return e.exit_code

    for warning in warnings:
        logger.warning("Config: %s", warning)

    endpoint = choose_endpoint(config)
    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
    logger.info("Backing up %s of host %s to %r", config.source, config.hostname, endpoint)

    try:
        result = BackupSession(config, endpoint).run()
    except __util__.AbortError as e:
        return e.exit_code
    except KeyboardInterrupt:
        logger.error("Interrupted. ABORT.")
        return 130
    finally:
        endpoint.close()

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    if result.returncode != 0 and config.strict:
        return result.exit_code
    return 0

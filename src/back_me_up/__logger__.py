# pyright: standard

"""back-me-up: back_me_up/__logger__.py
A common logger writing to a rich console and to syslog.
"""

import logging
import logging.handlers
import os

from rich.console import Console
from rich.logging import RichHandler

from .__util__ import LoggingUnavailable

PROGNAME = "back-me-up"

# Initialize basic console and handler
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
syslog_handler = None
logger = logging.getLogger("back_me_up")


def create_syslog_handler(address="/dev/log", facility="local4"):
    """Return a SysLogHandler tagged with the program name.

    Raises LoggingUnavailable if the syslog socket cannot be reached.
    """
    try:
        facility_code = logging.handlers.SysLogHandler.facility_names[facility]
    except KeyError:
        raise LoggingUnavailable(f"Unknown syslog facility: {facility}")
    # SysLogHandler itself ignores connection errors on unix sockets
    if isinstance(address, str) and not os.path.exists(address):
        raise LoggingUnavailable(
            f"I need a syslog socket at {address}, or else logging is not going to work.",
            path=address,
        )
    try:
        handler = logging.handlers.SysLogHandler(address=address, facility=facility_code)
    except OSError as e:
        raise LoggingUnavailable(
            f"I need a syslog socket at {address}, or else logging is not going to work: {e}",
            path=address,
        )
    handler.ident = f"{PROGNAME}: "
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def create_logger(level="INFO", syslog=True, address="/dev/log", facility="local4") -> None:
    """Helper function to setup logging for a session."""
    # pylint: disable=global-statement
    global cons, rich_handler, syslog_handler

    cons = Console(stderr=True)
    rich_handler = RichHandler(console=cons, show_path=False)

    if syslog_handler is not None:
        syslog_handler.close()
        syslog_handler = None
    if syslog:
        syslog_handler = create_syslog_handler(address, facility)

    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level)
    logger.addHandler(rich_handler)
    if syslog_handler is not None:
        logger.addHandler(syslog_handler)

"""back-me-up: back_me_up/__init__.py."""

import datetime
import re


__version__ = "0.3.0"

GENERATION_PREFIX = "BACKUP-"
_GENERATION_RE = re.compile(r"^BACKUP-(?P<host>.+)-(?P<date>\d{4}-\d{2}-\d{2})/?$")


def generation_name(hostname: str, day: datetime.date) -> str:
    """Return the directory name of the generation for hostname on day."""
    return f"{GENERATION_PREFIX}{hostname}-{day.strftime('%Y-%m-%d')}"


def parse_generation_name(name: str) -> tuple[str, datetime.date] | None:
    """Split a generation directory name into (hostname, date).

    Returns None if name does not follow the naming scheme.
    """
    match = _GENERATION_RE.match(name)
    if not match:
        return None
    try:
        day = datetime.datetime.strptime(match["date"], "%Y-%m-%d").date()
    except ValueError:
        return None
    return match["host"], day

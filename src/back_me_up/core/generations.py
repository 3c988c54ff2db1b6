"""Generation resolution: today's destination and the hard-link baseline."""

import datetime
import logging
import posixpath
from typing import NamedTuple, Optional

from .. import generation_name, parse_generation_name
from ..endpoint.common import Endpoint, GenerationOrder

logger = logging.getLogger(__name__)


class Resolution(NamedTuple):
    """Where today's backup goes and what it hard-links against.

    ``prior`` is relative to ``today_path`` ("../<name>"), or None when no
    earlier generation exists and the backup is a full one.
    """

    today_path: str
    prior: Optional[str]


def generation_path(root: str, hostname: str, day: datetime.date) -> str:
    """Return <root>/BACKUP-<hostname>-<YYYY-MM-DD>."""
    root = str(root)
    root = root.rstrip("/") or "/"
    return posixpath.join(root, generation_name(hostname, day))


def relative_prior(path: str) -> str:
    """Rewrite a generation path relative to a sibling generation directory.

    Relative paths resolve on the destination side, so this works for
    remote destinations without knowing the remote absolute root.
    """
    return "../" + posixpath.basename(str(path).rstrip("/"))


def _exclude_today(paths: list[str], today: datetime.date) -> list[str]:
    kept = []
    for path in paths:
        parsed = parse_generation_name(posixpath.basename(path.rstrip("/")))
        if parsed is not None and parsed[1] == today:
            continue
        kept.append(path)
    return kept


def find_prior_generation(
    endpoint: Endpoint, root: str, hostname: str, today: datetime.date
) -> Optional[str]:
    """Find the most recent generation before today.

    Two candidates are compared: the most recently modified generation and
    the last one by name. Names sort chronologically, while modification
    times can be touched by unrelated activity, so when they disagree the
    name wins and a warning is logged.
    """
    by_mtime = _exclude_today(
        endpoint.list_generations(root, hostname, GenerationOrder.MTIME), today
    )
    by_name = _exclude_today(
        endpoint.list_generations(root, hostname, GenerationOrder.NAME), today
    )
    last_changed = by_mtime[-1] if by_mtime else None
    last_name = by_name[-1] if by_name else None

    if last_changed is None or last_name is None:
        return last_name or last_changed

    if last_changed != last_name:
        logger.warning(
            "%s has been changed more recently, but the name of %s indicates it "
            "should be more recent. Choosing %s. If you disagree, use option "
            "'--last-backup' to tell where the latest backup is.",
            last_changed,
            last_name,
            last_name,
        )
    return last_name


def resolve_generations(
    endpoint: Endpoint,
    root: str,
    hostname: str,
    today: datetime.date,
    explicit_prior: Optional[str] = None,
) -> Resolution:
    """Compute today's generation path and the relative prior reference."""
    today_path = generation_path(root, hostname, today)

    if explicit_prior:
        prior = explicit_prior
    else:
        prior = find_prior_generation(endpoint, root, hostname, today)

    if prior is None:
        return Resolution(today_path, None)
    return Resolution(today_path, relative_prior(prior))

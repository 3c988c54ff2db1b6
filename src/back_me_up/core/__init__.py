"""Core backup logic for back-me-up.

Generation resolution, filter rules, the rsync invocation and the session
controller tying them together.
"""

from .filters import DEFAULT_RULES, FilterRule, materialize
from .generations import Resolution, resolve_generations
from .session import BackupSession, SessionResult
from .transfer import build_rsync_command, run_transfer

__all__ = [
    "BackupSession",
    "SessionResult",
    "Resolution",
    "resolve_generations",
    "FilterRule",
    "DEFAULT_RULES",
    "materialize",
    "build_rsync_command",
    "run_transfer",
]

"""rsync include/exclude rules selecting what gets backed up.

The backup always starts at '/'. Rules are applied in order and the first
match wins, so the final "- /*" turns the list into an allow-list.
"""

import enum
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..__util__ import WriteError

logger = logging.getLogger(__name__)

RULE_FILE_SUFFIX = ".rsync.includes"


class Action(enum.Enum):
    INCLUDE = "+"
    EXCLUDE = "-"


@dataclass(frozen=True)
class FilterRule:
    """One include or exclude rule in rsync's glob dialect."""

    action: Action
    pattern: str

    def __str__(self) -> str:
        return f"{self.action.value} {self.pattern}"


def include(pattern: str) -> FilterRule:
    return FilterRule(Action.INCLUDE, pattern)


def exclude(pattern: str) -> FilterRule:
    return FilterRule(Action.EXCLUDE, pattern)


# (comment, rules) groups, rendered in this order
RULE_GROUPS = (
    (
        "Whole home directories, except for what is unnecessary",
        (include("/home"), exclude("/home/*/.local/share/Trash")),
    ),
    (
        "Only /mnt mount points, not their contents",
        (include("/mnt"), include("/mnt/*"), exclude("/mnt/*/*")),
    ),
    ("Whole /etc", (include("/etc"),)),
    (
        "Kernel configs (these lie in /usr/src/)",
        (include("/usr"), include("/usr/src"), exclude("/usr/src/*/"), exclude("/usr/*")),
    ),
    ("Whole /var", (include("/var"),)),
    (
        "Global: no .hg, no .git, no .cache",
        (exclude("**/.git/"), exclude("**/.hg/"), exclude("**/.cache/")),
    ),
    ("Everything else at the root is left out", (exclude("/*"),)),
)

DEFAULT_RULES = tuple(rule for _, rules in RULE_GROUPS for rule in rules)


def render_rules(rules: Iterable[FilterRule] = DEFAULT_RULES) -> str:
    """Return rules in rsync's filter file format, one per line."""
    rules = tuple(rules)
    if rules == DEFAULT_RULES:
        sections = []
        for comment, group in RULE_GROUPS:
            lines = [f"# {comment}"] + [str(rule) for rule in group]
            sections.append("\n".join(lines))
        return "\n\n".join(sections) + "\n"
    return "".join(f"{rule}\n" for rule in rules)


def parse_rules(text: str) -> list[FilterRule]:
    """Parse filter file text, ignoring blank lines and '#' comments.

    Raises:
        ValueError: If a line is not "<+|-> <pattern>"
    """
    rules = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        sign, _, pattern = line.partition(" ")
        pattern = pattern.strip()
        try:
            action = Action(sign)
        except ValueError:
            raise ValueError(f"line {lineno}: rule must start with '+' or '-': {line!r}")
        if not pattern:
            raise ValueError(f"line {lineno}: rule has no pattern: {line!r}")
        rules.append(FilterRule(action, pattern))
    return rules


def load_rules(path) -> list[FilterRule]:
    """Read rules from an operator supplied filter file."""
    with open(path, encoding="utf-8") as f:
        return parse_rules(f.read())


def materialize(
    rules: Iterable[FilterRule] = DEFAULT_RULES, directory: Optional[str] = None
) -> Path:
    """Write rules to a new uniquely named temporary file and return its path.

    The file is not removed here; deleting it is up to the caller.

    Raises:
        WriteError: If the file cannot be created or written
    """
    content = render_rules(rules).encode("utf-8")
    try:
        fd, name = tempfile.mkstemp(suffix=RULE_FILE_SUFFIX, dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(content)
    except OSError as e:
        logger.error("Cannot create include file in %s: %s", directory or tempfile.gettempdir(), e)
        raise WriteError(str(e), path=directory)
    logger.debug("Filter rules written to %s", name)
    return Path(name)

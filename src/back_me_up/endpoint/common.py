# pyright: standard

"""back-me-up: back_me_up/endpoint/common.py
Common functionality among endpoints.
"""

import enum
import posixpath

from back_me_up import GENERATION_PREFIX, parse_generation_name
from back_me_up.__logger__ import logger


class GenerationOrder(enum.Enum):
    """Orderings in which existing generations can be listed."""

    MTIME = "mtime"
    NAME = "name"


class Endpoint:
    """Generic structure of a backup destination.

    Subclasses provide the three directory operations a session needs.
    Everything else is shared.
    """

    _is_remote = False

    def __init__(self, config=None, **kwargs) -> None:
        """
        Initialize the Endpoint with a configuration dictionary.

        Args:
            config (dict): Configuration dictionary containing endpoint settings.
            kwargs: Additional keyword arguments for backward compatibility.
        """
        config = config or {}
        self.config = {}
        self.config["path"] = self._normalize_path(config.get("path"))

        for key, value in kwargs.items():
            self.config[key] = value

    @staticmethod
    def _normalize_path(val):
        if val is None:
            return None
        val = str(val)
        return val.rstrip("/") or "/"

    def __repr__(self) -> str:
        return f"{self.config['path']}"

    def get_id(self) -> str:
        """Return an id string to identify this endpoint over multiple runs."""
        return f"unknown://{self.config['path']}"

    @property
    def remote(self) -> bool:
        """Whether the endpoint is reached over the network."""
        return self._is_remote

    @property
    def dest_prefix(self) -> str:
        """Prefix rsync needs in front of a destination path."""
        return ""

    def rsync_args(self) -> list[str]:
        """Extra rsync arguments needed to reach this endpoint."""
        return []

    def dir_writable(self, path) -> bool:
        """True iff path exists, is a directory and is writable."""
        raise NotImplementedError

    def make_dir(self, path) -> None:
        """Create path and any missing parents, raising CreateError on failure."""
        raise NotImplementedError

    def list_generations(self, root, hostname, order=GenerationOrder.NAME) -> list[str]:
        """Return generation directories of hostname under root.

        The list is ascending in the requested order, so its last element is
        the most recent generation.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any connection held by the endpoint."""

    @staticmethod
    def _is_generation_of(name, hostname) -> bool:
        parsed = parse_generation_name(name)
        return parsed is not None and parsed[0] == hostname

    @staticmethod
    def _generation_glob(root, hostname) -> str:
        return posixpath.join(str(root), f"{GENERATION_PREFIX}{hostname}-")

    def _filter_generations(self, paths, hostname):
        matching = []
        for path in paths:
            path = path.rstrip("/")
            if self._is_generation_of(posixpath.basename(path), hostname):
                matching.append(path)
            else:
                logger.debug("Ignoring non-generation entry: %s", path)
        return matching

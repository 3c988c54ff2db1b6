# pyright: standard

"""back-me-up: back_me_up/endpoint/local.py
Directory operations on the local filesystem.
"""

import os
from pathlib import Path

from back_me_up import __util__
from back_me_up.__logger__ import logger

from .common import Endpoint, GenerationOrder


class LocalEndpoint(Endpoint):
    """Create a local destination endpoint."""

    def get_id(self):
        """Return an id string to identify this endpoint over multiple runs."""
        return str(self.config["path"])

    def dir_writable(self, path) -> bool:
        return os.path.isdir(path) and os.access(path, os.W_OK)

    def make_dir(self, path) -> None:
        logger.info("Creating directory: %s", path)
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Error creating new location %s: %s", path, e)
            raise __util__.CreateError(str(e), path=path)

    def list_generations(self, root, hostname, order=GenerationOrder.NAME) -> list[str]:
        try:
            with os.scandir(root) as it:
                entries = [
                    entry
                    for entry in it
                    if entry.is_dir() and self._is_generation_of(entry.name, hostname)
                ]
        except OSError as e:
            logger.warning("Cannot list %s: %s", root, e)
            return []

        if order is GenerationOrder.MTIME:
            entries.sort(key=lambda entry: entry.stat().st_mtime)
        else:
            entries.sort(key=lambda entry: entry.name)
        return [os.path.join(root, entry.name) for entry in entries]

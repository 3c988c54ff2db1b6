"""Backup session: from destination checks to the finished rsync run."""

import getpass
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .. import __util__
from ..config import SessionConfig
from ..endpoint.common import Endpoint
from . import filters
from .generations import Resolution, resolve_generations
from .transfer import build_rsync_command, run_transfer

logger = logging.getLogger(__name__)


def ask_user(prompt: str) -> bool:
    """Ask a yes/no question on the terminal, defaulting to no."""
    try:
        answer = input(f"{prompt} (y/N) > ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


@dataclass
class SessionResult:
    """What a finished session did."""

    resolution: Resolution
    command: list[str]
    returncode: int
    filter_file: Optional[Path] = None
    updated: bool = False

    @property
    def exit_code(self) -> int:
        return 0 if self.returncode == 0 else __util__.TRANSFER_FAILED


class BackupSession:
    """Runs one backup of this host into today's generation.

    Fatal conditions are logged and raised as AbortError subclasses; the
    caller turns them into exit codes.
    """

    def __init__(
        self,
        config: SessionConfig,
        endpoint: Endpoint,
        confirm: Optional[Callable[[str], bool]] = None,
        runner: Optional[Callable[[list[str]], int]] = None,
    ) -> None:
        self.config = config
        self.endpoint = endpoint
        self.confirm = confirm or ask_user
        self.runner = runner or run_transfer

    @property
    def root(self) -> str:
        return self.endpoint.config["path"]

    def check_root(self) -> None:
        """Verify a local destination root; remote roots are checked on use."""
        if self.endpoint.remote:
            return
        if not self.endpoint.dir_writable(self.root):
            logger.error(
                "Backup destination (%s) is not a directory or is not writeable by user %s. ABORT.",
                self.root,
                _current_user(),
            )
            raise __util__.DestinationUnwritable(
                f"{self.root} is not a writable directory", path=self.root
            )

    def resolve(self) -> Resolution:
        resolution = resolve_generations(
            self.endpoint,
            self.root,
            self.config.hostname,
            self.config.today,
            self.config.last_backup,
        )
        if resolution.prior is None:
            logger.info("No previous backup found - doing a full backup.")
        else:
            logger.info("The latest backup resides at: %s", resolution.prior)
        return resolution

    def prepare_generation(self, today_path: str) -> bool:
        """Create today's generation or confirm updating it.

        Returns:
            True if an existing generation is being updated
        """
        if self.endpoint.dir_writable(today_path):
            logger.info("Backup destination (%s/) already exists.", today_path)
            prompt = f"Do you want to update the existing backup on {today_path}?"
            if self.config.assume_yes:
                logger.info("%s y (assume yes)", prompt)
            elif not self.confirm(prompt):
                logger.error("User chose not to update %s. ABORT.", today_path)
                raise __util__.UpdateDeclined(
                    f"update of {today_path} declined", path=today_path
                )
            logger.info("User chose to update backup at '%s'.", today_path)
            return True

        if self.config.dry_run:
            logger.info("Dry run: not creating %s", today_path)
            return False
        try:
            self.endpoint.make_dir(today_path)
        except __util__.CreateError:
            logger.error(
                "Unable to create the destination directory for this backup on %s. ABORT.",
                today_path,
            )
            raise
        return False

    def filter_rules(self) -> list[filters.FilterRule]:
        if not self.config.filter_file:
            return list(filters.DEFAULT_RULES)
        try:
            rules = filters.load_rules(self.config.filter_file)
        except (OSError, ValueError) as e:
            logger.error("Cannot read filter file %s: %s. ABORT.", self.config.filter_file, e)
            raise __util__.WriteError(str(e), path=self.config.filter_file)
        logger.info("Using %d filter rules from %s", len(rules), self.config.filter_file)
        return rules

    def build_command(self, resolution: Resolution, filter_file) -> list[str]:
        return build_rsync_command(
            self.config.source,
            resolution.today_path,
            filter_file,
            resolution.prior,
            dest_prefix=self.endpoint.dest_prefix,
            endpoint_args=self.endpoint.rsync_args(),
            max_size_mb=self.config.max_size_mb,
            dry_run=self.config.dry_run,
            rsync=self.config.rsync,
            ionice=self.config.ionice,
        )

    def transfer(self, cmd: list[str]) -> int:
        try:
            returncode = self.runner(cmd)
        except OSError as e:
            logger.error("Cannot run %s: %s", cmd[0], e)
            return 127
        if returncode != 0:
            logger.error("rsync exited with status %d", returncode)
        else:
            logger.info("rsync completed successfully")
        return returncode

    def run(self) -> SessionResult:
        """Run the whole session.

        Raises:
            AbortError: On any fatal condition, after logging it
        """
        self.check_root()
        resolution = self.resolve()
        updated = self.prepare_generation(resolution.today_path)

        rules = self.filter_rules()
        filter_file = filters.materialize(rules)
        try:
            cmd = self.build_command(resolution, filter_file)
            returncode = self.transfer(cmd)
        finally:
            if self.config.keep_filter_file or self.config.dry_run:
                logger.info("Filter rules kept at %s", filter_file)
            else:
                filter_file.unlink(missing_ok=True)

        return SessionResult(resolution, cmd, returncode, filter_file, updated)


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return str(os.geteuid())

"""Building and running the rsync invocation."""

import logging
import shlex
import shutil
import signal
import subprocess
import threading
from typing import Optional

logger = logging.getLogger(__name__)
# rsync's own diagnostics go to a separate logger so they can be told apart
rsync_logger = logging.getLogger("back_me_up.rsync")

RSYNC_FLAGS = ["-a", "--partial", "--hard-links", "--acls", "--xattrs"]


def ionice_prefix(enabled: bool = True) -> list[str]:
    """Return ["<ionice>", "-c3"] if ionice is wanted and installed."""
    if not enabled:
        return []
    ionice = shutil.which("ionice")
    return [ionice, "-c3"] if ionice else []


def build_rsync_command(
    source: str,
    destination: str,
    include_file,
    prior: Optional[str] = None,
    *,
    dest_prefix: str = "",
    endpoint_args: Optional[list[str]] = None,
    max_size_mb: Optional[int] = None,
    dry_run: bool = False,
    rsync: str = "rsync",
    ionice: bool = True,
) -> list[str]:
    """Assemble the rsync command line for one backup.

    Args:
        source: Root of the tree to back up
        destination: Today's generation path on the destination
        include_file: Filter rule file
        prior: Relative path of the previous generation for --link-dest,
            or None for a full backup (the option is then left out)
        dest_prefix: "user@host:" for remote destinations
        endpoint_args: Extra arguments needed to reach the destination
        max_size_mb: Skip files larger than this many MB
        dry_run: Only show what would be transferred
        rsync: rsync executable
        ionice: Run under the idle I/O scheduling class when available
    """
    cmd = ionice_prefix(ionice) + [rsync]
    cmd += endpoint_args or []
    if dry_run:
        cmd.append("--dry-run")
    if max_size_mb:
        cmd.append(f"--max-size={max_size_mb}M")
    cmd += RSYNC_FLAGS
    cmd.append(f"--include-from={include_file}")
    if prior:
        cmd.append(f"--link-dest={prior}")
    cmd += [source, f"{dest_prefix}{destination.rstrip('/')}/"]
    return cmd


def _interrupt_on_sigterm(signum, frame):
    raise KeyboardInterrupt(f"terminated by signal {signum}")


def _install_sigterm_handler():
    """Route SIGTERM through KeyboardInterrupt.

    Returns a callable restoring the previous handler. Signal handlers can
    only be set from the main thread; elsewhere nothing is installed.
    """
    if threading.current_thread() is not threading.main_thread():
        return lambda: None
    previous = signal.signal(signal.SIGTERM, _interrupt_on_sigterm)
    if previous is None:
        # installed outside Python
        previous = signal.SIG_DFL
    return lambda: signal.signal(signal.SIGTERM, previous)


def run_transfer(cmd: list[str]) -> int:
    """Run rsync, discarding stdout and logging each stderr line as an error.

    The child stays in our process group, so a terminal interrupt reaches
    it as well. While it runs, SIGTERM is handled like an interrupt: on
    KeyboardInterrupt the child is terminated and reaped before the
    exception propagates.

    Returns:
        rsync's exit status
    """
    logger.info("Running: %s", shlex.join(cmd))
    restore_handler = _install_sigterm_handler()
    proc = None
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
        assert proc.stderr is not None
        for line in proc.stderr:
            line = line.rstrip()
            if line:
                rsync_logger.error(line)
        return proc.wait()
    except KeyboardInterrupt:
        if proc is not None:
            logger.warning("Interrupted, stopping rsync (pid %d)", proc.pid)
            proc.terminate()
            proc.wait()
        raise
    finally:
        restore_handler()
        if proc is not None and proc.stderr is not None:
            proc.stderr.close()

import getpass
import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from back_me_up.__logger__ import logger


class SSHMasterManager:
    """Builds ssh command lines sharing one multiplexed connection.

    Every remote operation of a session goes through the same option set so
    the directory checks, the listings and rsync's own transport reuse a
    single authenticated connection.
    """

    def __init__(
        self,
        hostname: str,
        username: Optional[str] = None,
        port: Optional[int] = None,
        control_dir: Optional[str] = None,
        persist: str = "60",
        identity_file: Optional[str] = None,
    ):
        self.hostname = hostname
        self.username = username or getpass.getuser()
        self.port = port
        self.persist = persist
        self.identity_file = os.path.expanduser(identity_file) if identity_file else None

        if control_dir:
            self.control_dir = Path(control_dir)
        else:
            self.control_dir = Path(tempfile.gettempdir()) / f"back-me-up-{getpass.getuser()}"
        self.control_path = (
            self.control_dir / f"cm_{self.username}_{self.hostname}_{os.getpid()}.sock"
        )

    def _ssh_options(self) -> List[str]:
        opts = [
            f"ControlPath={self.control_path}",
            "ControlMaster=auto",
            f"ControlPersist={self.persist}",
            "ServerAliveInterval=5",
            "ServerAliveCountMax=6",
            "StrictHostKeyChecking=accept-new",
            "BatchMode=yes",
            "Compression=yes",
        ]
        cmd = []
        for opt in opts:
            cmd.extend(["-o", opt])
        if self.port:
            cmd.extend(["-p", str(self.port)])
        if self.identity_file:
            cmd.extend(["-i", str(self.identity_file)])
        cmd.extend(["-l", self.username])
        return cmd

    def _ensure_control_dir(self) -> None:
        self.control_dir.mkdir(mode=0o700, exist_ok=True)

    def get_ssh_base_cmd(self) -> List[str]:
        """Return the ssh command line up to and including the host name."""
        self._ensure_control_dir()
        return ["ssh", *self._ssh_options(), self.hostname]

    def get_rsync_shell(self) -> str:
        """Return the remote shell string for rsync's ``-e`` option."""
        self._ensure_control_dir()
        return shlex.join(["ssh", *self._ssh_options()])

    def stop_master(self) -> bool:
        if not self.control_path.exists():
            return True

        cmd = ["ssh", "-O", "exit", "-o", f"ControlPath={self.control_path}", self.hostname]
        try:
            subprocess.run(cmd, check=True, capture_output=True)
            return True
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"Failed to stop SSH master: {e}")
            return False

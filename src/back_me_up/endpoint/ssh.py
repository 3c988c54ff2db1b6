# pyright: strict

"""back-me-up: SSH Endpoint for managing remote operations.

Every operation is a single remote command string executed through the
shared connection of an SSHMasterManager. The remote command's exit status
and stdout are the only results used.
"""

import shlex
import subprocess
from typing import Any, Dict, List, Optional

from back_me_up import __util__
from back_me_up.__logger__ import logger
from back_me_up.sshutil.master import SSHMasterManager

from .common import Endpoint, GenerationOrder


class SSHEndpoint(Endpoint):
    """SSH-based destination endpoint.

    The remote user defaults to the local user name when not configured.
    """

    _is_remote = True

    def __init__(
        self,
        hostname: str,
        config: Optional[Dict[str, Any]] = None,
        ssh_manager: Optional[SSHMasterManager] = None,
        **kwargs: Any,
    ) -> None:
        config = dict(config or {})
        super().__init__(config=config, **kwargs)
        self.hostname: str = hostname
        self.config["username"] = config.get("username")
        self.config["port"] = config.get("port")
        self.config["ssh_key"] = config.get("ssh_key")

        self.ssh_manager: SSHMasterManager = ssh_manager or SSHMasterManager(
            hostname,
            username=self.config["username"],
            port=self.config["port"],
            identity_file=self.config["ssh_key"],
        )
        self.config["username"] = self.ssh_manager.username

        logger.debug(
            "SSH endpoint configuration: hostname=%s, username=%s, port=%s",
            self.hostname,
            self.config["username"],
            self.config["port"],
        )

    def __repr__(self) -> str:
        return f"(SSH) {self.config['username']}@{self.hostname}:{self.config['path']}"

    def get_id(self) -> str:
        """Return a unique identifier for this SSH endpoint."""
        username: str = self.config.get("username") or ""
        username_part: str = f"{username}@" if username else ""
        port = self.config.get("port")
        port_part = f":{port}" if port else ""
        return f"ssh://{username_part}{self.hostname}{port_part}{self.config['path']}"

    @property
    def dest_prefix(self) -> str:
        return f"{self.config['username']}@{self.hostname}:"

    def rsync_args(self) -> List[str]:
        return ["-z", "-e", self.ssh_manager.get_rsync_shell()]

    def _exec_remote_command(self, command: str) -> "subprocess.CompletedProcess[str]":
        """Execute one command string on the remote host via SSH.

        If ssh itself cannot be started the result carries status 255, the
        status ssh uses for its own failures.
        """
        ssh_cmd = self.ssh_manager.get_ssh_base_cmd() + ["--", command]
        logger.debug("Complete SSH command: %s", ssh_cmd)
        try:
            return subprocess.run(
                ssh_cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            logger.error("Cannot run %s: %s", ssh_cmd[0], e)
            return subprocess.CompletedProcess(ssh_cmd, 255, "", str(e))

    def dir_writable(self, path: Any) -> bool:
        quoted = shlex.quote(str(path))
        result = self._exec_remote_command(f"test -d {quoted} -a -w {quoted}")
        if result.returncode != 0:
            logger.debug(
                "Remote test on %s exited with %d: %s",
                path,
                result.returncode,
                result.stderr.strip(),
            )
        return result.returncode == 0

    def make_dir(self, path: Any) -> None:
        logger.info("Creating remote directory: %s%s", self.dest_prefix, path)
        result = self._exec_remote_command(f"mkdir -p -- {shlex.quote(str(path))}")
        if result.returncode != 0:
            stderr = result.stderr.strip()
            logger.error("Error creating new location %s: %s", path, stderr)
            raise __util__.CreateError(stderr, path=path)

    def list_generations(
        self, root: Any, hostname: str, order: GenerationOrder = GenerationOrder.NAME
    ) -> List[str]:
        # Only the host prefix is quoted, the trailing "*/" must stay a glob.
        pattern = shlex.quote(self._generation_glob(root, hostname)) + "*/"
        if order is GenerationOrder.MTIME:
            command = f"ls -1dtr -- {pattern}"
        else:
            command = f"ls -1d -- {pattern}"
        result = self._exec_remote_command(command)
        if result.returncode != 0:
            logger.debug(
                "No remote generations listed under %s: %s", root, result.stderr.strip()
            )
            return []
        generations = self._filter_generations(result.stdout.splitlines(), hostname)
        if order is GenerationOrder.NAME:
            generations.sort()
        return generations

    def close(self) -> None:
        self.ssh_manager.stop_master()

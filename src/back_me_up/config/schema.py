"""Configuration schema definitions using dataclasses.

One frozen record describes a whole backup session. It is built once from
the config file and the command line, then handed to every component.
"""

import datetime
import socket
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class SessionConfig:
    """Settings for a single backup session.

    Attributes:
        destination: Directory that holds the generations (local or remote path)
        ssh_host: Remote host, optionally as "host:port"; None for a local destination
        ssh_port: Remote SSH port (overrides a port given in ssh_host)
        ssh_user: Remote user name
        ssh_key: Path to the SSH private key used for the remote host
        hostname: Name of the host being backed up, used in generation names
        source: Root of the filesystem tree handed to rsync
        assume_yes: Answer "yes" to the update prompt
        dry_run: Pass --dry-run to rsync and create nothing
        max_size_mb: Largest file size to transfer, in MB
        last_backup: Explicit path of the latest previous generation
        filter_file: Rule file replacing the built-in filter rules
        ionice: Run rsync under "ionice -c3" when available
        rsync: rsync executable
        strict: Return a failure exit status when rsync fails
        keep_filter_file: Keep the temporary rule file after the session
        syslog: Send log messages to syslog
        syslog_address: Syslog socket path
        syslog_facility: Syslog facility name
        today: Calendar date of the session
    """

    destination: Optional[str] = None
    ssh_host: Optional[str] = None
    ssh_port: Optional[int] = None
    ssh_user: Optional[str] = None
    ssh_key: Optional[str] = None
    hostname: str = field(default_factory=socket.gethostname)
    source: str = "/"
    assume_yes: bool = False
    dry_run: bool = False
    max_size_mb: Optional[int] = None
    last_backup: Optional[str] = None
    filter_file: Optional[str] = None
    ionice: bool = True
    rsync: str = "rsync"
    strict: bool = False
    keep_filter_file: bool = False
    syslog: bool = True
    syslog_address: str = "/dev/log"
    syslog_facility: str = "local4"
    today: datetime.date = field(default_factory=datetime.date.today)

    @property
    def remote(self) -> bool:
        """Whether the destination is reached over SSH."""
        return bool(self.ssh_host)

    def ssh_target(self) -> tuple[Optional[str], Optional[int]]:
        """Split ssh_host into (host, port).

        An explicit ssh_port wins over a port embedded in ssh_host.
        """
        if not self.ssh_host:
            return None, None
        host, sep, port = self.ssh_host.rpartition(":")
        if not sep or not port.isdigit():
            return self.ssh_host, self.ssh_port
        return host, self.ssh_port or int(port)

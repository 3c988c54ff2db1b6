"""Pytest configuration and shared fixtures."""

import datetime
import logging

import pytest

from back_me_up import __logger__
from back_me_up.__util__ import CreateError
from back_me_up.config import SessionConfig
from back_me_up.endpoint.common import Endpoint, GenerationOrder


class FakeEndpoint(Endpoint):
    """In-memory endpoint recording what a session asks of it."""

    def __init__(self, path="/backup", remote=False, writable=(), generations=(), mtime_order=None):
        super().__init__(config={"path": path})
        self._is_remote = remote
        self.writable = set(writable)
        self.generations = list(generations)
        self.mtime_order = list(mtime_order) if mtime_order is not None else None
        self.created = []
        self.list_calls = []
        self.fail_mkdir = False

    @property
    def dest_prefix(self):
        return "backup@nas:" if self.remote else ""

    def dir_writable(self, path):
        return path in self.writable

    def make_dir(self, path):
        if self.fail_mkdir:
            raise CreateError("Permission denied", path=path)
        self.created.append(path)
        self.writable.add(path)

    def list_generations(self, root, hostname, order=GenerationOrder.NAME):
        self.list_calls.append(order)
        if order is GenerationOrder.MTIME and self.mtime_order is not None:
            names = self.mtime_order
        else:
            names = sorted(self.generations)
        return [f"{root}/{name}" for name in names if self._is_generation_of(name, hostname)]


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo create_logger() so caplog sees package records in every test."""
    yield
    package_logger = logging.getLogger("back_me_up")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
    if __logger__.syslog_handler is not None:
        __logger__.syslog_handler.close()
        __logger__.syslog_handler = None


@pytest.fixture
def make_endpoint():
    """Return a factory for FakeEndpoint objects."""
    return FakeEndpoint


@pytest.fixture
def session_config():
    """Session config for host srv1 backing up to /backup on 2024-03-01."""
    return SessionConfig(
        destination="/backup",
        hostname="srv1",
        today=datetime.date(2024, 3, 1),
        assume_yes=True,
        ionice=False,
        syslog=False,
    )


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[destination]
path = "/backups"
ssh_host = "nas.example.org:2222"
ssh_user = "backup"
ssh_key = "/root/.ssh/id_backup"

[backup]
hostname = "srv1"
assume_yes = true
max_size_mb = 512
last_backup = "/backups/BACKUP-srv1-2024-02-29"
ionice = false
strict = true

[logging]
syslog = false
facility = "local5"
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[destination]
path = "/mnt/backup"
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path

"""Tests for rsync command construction and execution."""

import logging
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

import back_me_up
from back_me_up.core import transfer
from back_me_up.core.transfer import RSYNC_FLAGS, build_rsync_command, ionice_prefix, run_transfer


class TestIonicePrefix:
    """Tests for ionice_prefix."""

    def test_disabled(self):
        """Test no prefix when disabled."""
        assert ionice_prefix(False) == []

    def test_found(self, monkeypatch):
        """Test the idle class prefix when ionice is installed."""
        monkeypatch.setattr(transfer.shutil, "which", lambda name: "/usr/bin/ionice")
        assert ionice_prefix(True) == ["/usr/bin/ionice", "-c3"]

    def test_missing(self, monkeypatch):
        """Test no prefix when ionice is not installed."""
        monkeypatch.setattr(transfer.shutil, "which", lambda name: None)
        assert ionice_prefix(True) == []


class TestBuildRsyncCommand:
    """Tests for build_rsync_command."""

    def test_full_backup(self):
        """Test the first backup of a host has no --link-dest."""
        cmd = build_rsync_command(
            "/", "/backup/BACKUP-srv1-2024-03-01", "/tmp/x.rsync.includes", ionice=False
        )
        assert cmd == [
            "rsync",
            *RSYNC_FLAGS,
            "--include-from=/tmp/x.rsync.includes",
            "/",
            "/backup/BACKUP-srv1-2024-03-01/",
        ]
        assert not any(arg.startswith("--link-dest") for arg in cmd)

    def test_incremental(self):
        """Test the prior generation is passed as a relative --link-dest."""
        cmd = build_rsync_command(
            "/",
            "/backup/BACKUP-srv1-2024-03-02",
            "/tmp/x.rsync.includes",
            "../BACKUP-srv1-2024-03-01",
            ionice=False,
        )
        assert "--link-dest=../BACKUP-srv1-2024-03-01" in cmd
        assert cmd.index("--include-from=/tmp/x.rsync.includes") < cmd.index(
            "--link-dest=../BACKUP-srv1-2024-03-01"
        )
        assert cmd[-2:] == ["/", "/backup/BACKUP-srv1-2024-03-02/"]

    def test_remote(self):
        """Test remote transport options come right after rsync."""
        cmd = build_rsync_command(
            "/",
            "/backups/BACKUP-srv1-2024-03-01",
            "/tmp/x",
            dest_prefix="backup@nas:",
            endpoint_args=["-z", "-e", "ssh -p 2222"],
            ionice=False,
        )
        assert cmd[:4] == ["rsync", "-z", "-e", "ssh -p 2222"]
        assert cmd[-1] == "backup@nas:/backups/BACKUP-srv1-2024-03-01/"

    def test_options(self):
        """Test dry run, size limit and a custom rsync binary."""
        cmd = build_rsync_command(
            "/",
            "/backup/BACKUP-srv1-2024-03-01/",
            "/tmp/x",
            max_size_mb=100,
            dry_run=True,
            rsync="/opt/bin/rsync",
            ionice=False,
        )
        assert cmd[:3] == ["/opt/bin/rsync", "--dry-run", "--max-size=100M"]
        assert cmd[-1] == "/backup/BACKUP-srv1-2024-03-01/"

    def test_ionice_first(self, monkeypatch):
        """Test ionice wraps the whole command."""
        monkeypatch.setattr(transfer.shutil, "which", lambda name: "/usr/bin/ionice")
        cmd = build_rsync_command("/", "/backup/x", "/tmp/x")
        assert cmd[:3] == ["/usr/bin/ionice", "-c3", "rsync"]


class TestRunTransfer:
    """Tests for run_transfer."""

    def test_exit_status_and_stderr(self, caplog):
        """Test stderr lines are logged as errors and stdout is discarded."""
        with caplog.at_level(logging.DEBUG, logger="back_me_up"):
            status = run_transfer(["sh", "-c", "echo out; echo err >&2; exit 3"])

        assert status == 3
        rsync_records = [r for r in caplog.records if r.name == "back_me_up.rsync"]
        assert [r.getMessage() for r in rsync_records] == ["err"]
        assert rsync_records[0].levelno == logging.ERROR
        assert "out" not in [r.getMessage() for r in caplog.records]

    def test_success(self):
        """Test a clean exit."""
        assert run_transfer(["sh", "-c", "exit 0"]) == 0

    def test_missing_executable(self):
        """Test a missing program raises OSError."""
        with pytest.raises(OSError):
            run_transfer(["/nonexistent/rsync"])

    def test_sigterm_handler_restored(self):
        """Test the previous SIGTERM handler is back after the transfer."""
        before = signal.getsignal(signal.SIGTERM)
        run_transfer(["sh", "-c", "exit 0"])
        assert signal.getsignal(signal.SIGTERM) == before

    def test_sigterm_raises_interrupt(self):
        """Test SIGTERM while rsync runs stops it and raises KeyboardInterrupt."""
        before = signal.getsignal(signal.SIGTERM)
        start = time.monotonic()
        with pytest.raises(KeyboardInterrupt):
            run_transfer(["sh", "-c", "sleep 0.2; kill -TERM $PPID; exec sleep 30"])

        assert time.monotonic() - start < 10
        assert signal.getsignal(signal.SIGTERM) == before


class TestTerminatedParent:
    """Killing the backup process must not leave rsync behind."""

    SCRIPT = (
        "import sys\n"
        "from back_me_up.core.transfer import run_transfer\n"
        "run_transfer(['sh', '-c', 'echo $$ > \"$1\"; exec sleep 30', 'sh', sys.argv[1]])\n"
    )

    def test_child_stopped_with_parent(self, tmp_path):
        """Test SIGTERM to the parent also ends the transfer child."""
        pid_file = tmp_path / "child.pid"
        env = dict(os.environ)
        src = str(Path(back_me_up.__file__).resolve().parents[1])
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [src, env.get("PYTHONPATH")]))
        parent = subprocess.Popen(
            [sys.executable, "-c", self.SCRIPT, str(pid_file)],
            env=env,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        try:
            deadline = time.monotonic() + 15
            child = None
            while child is None and time.monotonic() < deadline:
                if pid_file.exists() and pid_file.read_text().strip():
                    child = int(pid_file.read_text())
                else:
                    time.sleep(0.05)
            assert child is not None, "transfer child never started"

            parent.send_signal(signal.SIGTERM)
            parent.wait(timeout=15)
        finally:
            if parent.poll() is None:
                parent.kill()
                parent.wait()

        with pytest.raises(ProcessLookupError):
            os.kill(child, 0)

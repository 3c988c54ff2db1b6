"""Tests for config command functionality."""

import argparse

from back_me_up.cli.config_cmd import execute_config
from back_me_up.config import load_config


def make_args(**kwargs):
    defaults = {"verbose": False, "quiet": False, "debug": False, "config": None}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestConfigInit:
    """Tests for 'config init'."""

    def test_prints_example(self, capsys):
        """Test the example goes to stdout without -o."""
        assert execute_config(make_args(config_action="init", output=None)) == 0
        out = capsys.readouterr().out
        assert "[destination]" in out
        assert "[logging]" in out

    def test_writes_file(self, tmp_path, capsys):
        """Test the example is written to a file that loads."""
        output = tmp_path / "config.toml"
        assert execute_config(make_args(config_action="init", output=str(output))) == 0
        config, _ = load_config(output)
        assert config.destination == "/mnt/backup"
        assert "written to" in capsys.readouterr().out

    def test_unwritable_output(self, tmp_path):
        """Test a failed write returns 1."""
        output = tmp_path / "missing" / "config.toml"
        assert execute_config(make_args(config_action="init", output=str(output))) == 1


class TestConfigValidate:
    """Tests for 'config validate'."""

    def test_valid(self, config_file, capsys):
        """Test a valid file is reported with its destination."""
        args = make_args(config_action="validate", config=str(config_file))
        assert execute_config(args) == 0
        out = capsys.readouterr().out
        assert "Configuration is valid." in out
        assert "nas.example.org:2222:/backups" in out
        assert "srv1" in out

    def test_warnings_listed(self, tmp_path, capsys):
        """Test warnings are printed."""
        path = tmp_path / "config.toml"
        path.write_text('[destination]\npath = "/b"\n[backup]\nsource = "/srv"\n')
        assert execute_config(make_args(config_action="validate", config=str(path))) == 0
        assert "Warnings:" in capsys.readouterr().out

    def test_invalid(self, tmp_path, capsys):
        """Test an invalid file returns the usage status."""
        path = tmp_path / "config.toml"
        path.write_text("[backup]\nstrict = true\n")
        assert execute_config(make_args(config_action="validate", config=str(path))) == 64
        assert "Configuration error" in capsys.readouterr().out

    def test_no_file(self, tmp_path, monkeypatch, capsys):
        """Test the search locations are shown when nothing is found."""
        monkeypatch.setattr("back_me_up.config.loader.CONFIG_PATHS", [tmp_path / "none.toml"])
        assert execute_config(make_args(config_action="validate")) == 1
        assert "No configuration file found." in capsys.readouterr().out


def test_no_action(capsys):
    """Test a missing action prints usage."""
    assert execute_config(make_args(config_action=None)) == 64
    assert "Usage" in capsys.readouterr().out

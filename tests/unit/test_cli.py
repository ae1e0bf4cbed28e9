"""Unit tests for CLI modules."""

import json
import logging

import pytest

from pushbook import __version__
from pushbook.cli import configure_logging, get_version_string, inventory, playbook
from pushbook.engine.errors import ExitCode


class TestPlaybookCLI:
    """Tests for playbook CLI."""

    def test_create_parser(self):
        parser = playbook.create_parser()
        assert parser.prog == "pushbook-playbook"

    def test_version_string(self):
        version = get_version_string("pushbook-playbook")
        assert __version__ in version

    def test_no_args_shows_help(self, capsys):
        assert playbook.main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_inventory_required(self, capsys):
        assert playbook.main(["site.yml"]) == ExitCode.LOAD_ERROR
        assert "inventory is required" in capsys.readouterr().err

    def test_inventory_sources_exclusive(self):
        with pytest.raises(SystemExit):
            playbook.create_parser().parse_args(["-c", "a.yml", "-s", "b.sh", "site.yml"])

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        ("deploy", ["deploy"]),
        ("deploy, config,", ["deploy", "config"]),
    ])
    def test_parse_tags(self, value, expected):
        assert playbook.parse_tags(value) == expected

    def test_build_config_cli_overrides_file(self, write_file):
        config_file = write_file("pushbook.yml", "forks: 4\ntask_timeout: 10\n")
        parsed = playbook.create_parser().parse_args([
            "-c", "hosts.yml", "--config", str(config_file), "-f", "8", "--fail-fast", "site.yml",
        ])

        config = playbook.build_config(parsed)

        assert config.forks == 8
        assert config.task_timeout == 10
        assert config.fail_fast is True
        assert config.json_output is False

    def test_invalid_forks(self, inventory_file, capsys):
        assert playbook.main(["-c", str(inventory_file), "-f", "0", "site.yml"]) == ExitCode.LOAD_ERROR

    def test_missing_playbook(self, inventory_file, tmp_path, capsys):
        result = playbook.main(["-c", str(inventory_file), str(tmp_path / "missing.yml")])
        assert result == ExitCode.LOAD_ERROR
        assert "Playbook not found" in capsys.readouterr().err


class TestInventoryCLI:
    """Tests for inventory CLI."""

    def test_create_parser(self):
        parser = inventory.create_parser()
        assert parser.prog == "pushbook-inventory"

    def test_list_returns_json(self, inventory_file, capsys):
        assert inventory.main(["-c", str(inventory_file), "--list"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [h["address"] for h in data["hosts"]] == ["web1", "web2", "db1"]

    def test_host_shows_effective_credentials(self, inventory_file, capsys):
        assert inventory.main(["-c", str(inventory_file), "--host", "web2"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"address": "web2", "user": "admin", "key": "~/.ssh/id_rsa", "connection": "ssh"}

    def test_host_yaml(self, inventory_file, capsys):
        assert inventory.main(["-c", str(inventory_file), "--host", "db1", "-y"]) == 0
        assert "key: /keys/db" in capsys.readouterr().out

    def test_unknown_host(self, inventory_file):
        assert inventory.main(["-c", str(inventory_file), "--host", "nope"]) == ExitCode.GENERIC_ERROR

    def test_bad_inventory(self, write_file, capsys):
        bad = write_file("bad.yml", "hosts: []\n")
        assert inventory.main(["-c", str(bad), "--list"]) == ExitCode.LOAD_ERROR


class TestLogging:
    """Verbosity maps to logging levels."""

    @pytest.mark.parametrize("verbosity,level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_levels(self, verbosity, level):
        assert configure_logging(verbosity) == level

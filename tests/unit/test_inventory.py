"""
Tests for inventory loading and credential resolution.
"""

import os
import stat
from pathlib import Path

import pytest

from pushbook.engine.errors import LoadError
from pushbook.engine.inventory import GlobalConfig, Host, HostInventory


class TestInventoryFile:
    """Test loading static inventory files."""

    def test_from_file(self, inventory_file: Path):
        inventory = HostInventory.from_file(inventory_file)

        assert inventory.global_config == GlobalConfig("deploy", "~/.ssh/id_rsa")
        assert [h.address for h in inventory.hosts] == ["web1", "web2", "db1"]
        assert inventory.get_host("web2").user == "admin"
        assert inventory.get_host("nope") is None

    def test_match_is_set_membership_in_inventory_order(self, inventory_file: Path):
        inventory = HostInventory.from_file(inventory_file)

        matched = inventory.match(["db1", "web1", "unknown", "web*"])

        assert [h.address for h in matched] == ["web1", "db1"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(LoadError, match="Inventory not found"):
            HostInventory.from_file(tmp_path / "missing.yml")

    def test_invalid_utf8(self, tmp_path: Path):
        path = tmp_path / "hosts.yml"
        path.write_bytes(b"global_config: {user: \xff, key: k}\nhosts: []\n")
        with pytest.raises(LoadError, match="UTF-8"):
            HostInventory.from_file(path)

    @pytest.mark.parametrize("content,message", [
        ("[]", "must be a mapping"),
        ("hosts: []", "global_config"),
        ("global_config: {user: a}", "missing key"),
        ("global_config: {user: a, key: b}\nhosts: {a: 1}", "must be a list"),
        ("global_config: {user: a, key: b}\nhosts: [web1]", "'address'"),
        ("global_config: {user: a, key: b}\nhosts: [{address: a}, {address: a}]", "duplicate host address"),
        ("global_config: {user: a, key: b}\nhosts: [{address: a, connection: winrm}]", "unknown connection type"),
    ])
    def test_structure_errors(self, content, message):
        with pytest.raises(LoadError, match=message):
            HostInventory.from_yaml(content, "hosts.yml")

    def test_round_trip_dict(self, inventory_file: Path):
        inventory = HostInventory.from_file(inventory_file)
        assert HostInventory.from_dict(inventory.to_dict()) == inventory


class TestCredentials:
    """Host overrides fall back to playbook local_config, then global_config."""

    def test_host_override_wins(self):
        host = Host("web1", user="admin", key="/k/admin")
        assert host.credentials(GlobalConfig("deploy", "/k/deploy")) == ("admin", "/k/admin")

    def test_falls_back_to_global(self):
        host = Host("web1", user="admin")
        assert host.credentials(GlobalConfig("deploy", "/k/deploy")) == ("admin", "/k/deploy")

    def test_local_config_between_host_and_global(self):
        host = Host("web1", key="/k/host")
        user, key = host.credentials(GlobalConfig("deploy", "/k/deploy"), GlobalConfig("ops", "/k/ops"))
        assert (user, key) == ("ops", "/k/host")


class TestInventoryScript:
    """Test discovery scripts."""

    def _script(self, tmp_path: Path, body: str) -> Path:
        path = tmp_path / "discover.sh"
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path

    @pytest.mark.skipif(os.name == "nt", reason="requires a POSIX shell")
    def test_script_output_is_parsed(self, tmp_path: Path):
        script = self._script(tmp_path, """cat <<EOF
global_config: {user: deploy, key: /k/deploy}
hosts:
  - address: 10.0.0.5
EOF
""")
        inventory = HostInventory.from_script(script)
        assert [h.address for h in inventory.hosts] == ["10.0.0.5"]

    @pytest.mark.skipif(os.name == "nt", reason="requires a POSIX shell")
    def test_script_failure(self, tmp_path: Path):
        script = self._script(tmp_path, "echo 'no cloud credentials' >&2\nexit 4\n")
        with pytest.raises(LoadError) as exc:
            HostInventory.from_script(script)
        assert "status 4" in str(exc.value)
        assert "no cloud credentials" in str(exc.value)

    def test_script_missing(self, tmp_path: Path):
        with pytest.raises(LoadError, match="failed to execute"):
            HostInventory.from_script(tmp_path / "missing.sh")

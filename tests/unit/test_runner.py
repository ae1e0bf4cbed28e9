"""
Tests for the high-level runner and its exit codes.
"""

import json
from pathlib import Path

import pytest

from pushbook.config import RunConfig
from pushbook.engine.display import Display, TaskEvent
from pushbook.engine.errors import ExitCode
from pushbook.engine.runner import PlaybookRunner


@pytest.fixture
def site(write_file) -> Path:
    return write_file("site.yml", """
name: site
hosts: [web1, web2]
tasks:
  - shell: {name: hello, command: echo hello}
    tags: [greet]
  - shell: {name: bye, command: echo bye}
""")


class TestPlaybookRunner:
    """Test end-to-end runs against fake sessions."""

    def test_successful_run(self, site, inventory_file, fleet, capsys):
        runner = PlaybookRunner(site, host_config=inventory_file, session_factory=fleet,
                                display=Display(color=False))

        assert runner.run() == ExitCode.SUCCESS

        out = capsys.readouterr().out
        assert "hello: web1 - START" in out
        assert "bye: web2 - CHANGED" in out
        assert "RECAP" in out
        stats = runner.result.get_final_stats()
        assert stats["web1"].changed == 2
        assert "db1" not in stats

    def test_tags(self, site, inventory_file, fleet):
        runner = PlaybookRunner(site, host_config=inventory_file, tags=["greet"], session_factory=fleet)

        assert runner.run() == 0
        assert fleet.commands_for("web1") == ["echo hello"]

    def test_host_failure_exit_code(self, site, inventory_file, fleet):
        fleet.unreachable.add("web2")
        runner = PlaybookRunner(site, host_config=inventory_file, session_factory=fleet)

        assert runner.run() == ExitCode.HOST_FAILED
        assert fleet.commands_for("web1") == ["echo hello", "echo bye"]

    def test_fail_fast_exit_code(self, site, inventory_file, fleet, capsys):
        fleet.unreachable.add("web2")
        runner = PlaybookRunner(site, host_config=inventory_file, session_factory=fleet,
                                config=RunConfig(fail_fast=True))

        assert runner.run() == ExitCode.HOST_FAILED
        assert "Halted" in capsys.readouterr().err

    def test_load_error_before_any_host_work(self, write_file, inventory_file, fleet, capsys):
        bad = write_file("bad.yml", "hosts: [web1]\ntasks:\n  - reboot: {name: r}\n")
        runner = PlaybookRunner(bad, host_config=inventory_file, session_factory=fleet)

        assert runner.run() == ExitCode.LOAD_ERROR
        assert fleet.sessions == []
        assert "unknown task kind" in capsys.readouterr().err

    def test_missing_inventory(self, site, fleet):
        runner = PlaybookRunner(site, session_factory=fleet)
        assert runner.run() == ExitCode.LOAD_ERROR

    def test_both_inventory_sources(self, site, inventory_file, fleet):
        runner = PlaybookRunner(site, host_config=inventory_file, host_script="x.sh", session_factory=fleet)
        assert runner.run() == ExitCode.LOAD_ERROR

    def test_json_output(self, site, inventory_file, fleet, capsys):
        runner = PlaybookRunner(site, host_config=inventory_file, session_factory=fleet,
                                config=RunConfig(json_output=True))

        assert runner.run() == 0

        report = json.loads(capsys.readouterr().out)
        assert report["playbook"] == str(site)
        assert report["stats"]["web1"]["changed"] == 2
        tasks = report["levels"][0]["tasks"]
        assert {"host": "web1", "task": "hello", "status": "changed", "stdout": "hello\n", "rc": 0} in tasks

    def test_json_load_error(self, tmp_path, inventory_file, fleet, capsys):
        runner = PlaybookRunner(tmp_path / "missing.yml", host_config=inventory_file,
                                session_factory=fleet, config=RunConfig(json_output=True))

        assert runner.run() == ExitCode.LOAD_ERROR
        report = json.loads(capsys.readouterr().out)
        assert report["error_type"] == "load_error"
        assert report["exit_code"] == 3


class TestDisplayEvents:
    """The display records a structured event stream."""

    def test_events_and_subscribers(self, site, inventory_file, fleet):
        display = Display(color=False)
        seen = []
        display.subscribe(seen.append)
        runner = PlaybookRunner(site, host_config=inventory_file, session_factory=fleet, display=display)

        runner.run()

        assert seen == display.events
        web1 = [e for e in display.events if e.host == "web1"]
        assert web1 == [
            TaskEvent("web1", "hello", "start"),
            TaskEvent("web1", "hello", "changed"),
            TaskEvent("web1", "bye", "start"),
            TaskEvent("web1", "bye", "changed"),
        ]

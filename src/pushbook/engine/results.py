"""
Pushbook Result Classes

Data structures for task, playbook-level and run results.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pushbook.engine.playbook import TaskKind


class TaskStatus(Enum):
    """Status of a task execution."""
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TaskResult:
    """Result of executing a single task on a single host."""

    host: str
    task_name: str
    status: TaskStatus
    # Task kind as executed (shell kinds carry their captured output)
    kind: Optional[TaskKind] = None
    stdout: str = ""
    rc: Optional[int] = None
    msg: str = ""

    @property
    def register_value(self) -> str:
        """Value stored in the host context by 'register'."""
        return self.status.value

    @property
    def changed(self) -> bool:
        return self.status == TaskStatus.CHANGED

    @property
    def failed(self) -> bool:
        return self.status == TaskStatus.FAILED

    def __str__(self) -> str:
        return f"{self.task_name}: {self.host} - {self.status.value.upper()}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        result: Dict[str, Any] = {
            "host": self.host,
            "task": self.task_name,
            "status": self.status.value,
        }
        if self.stdout:
            result["stdout"] = self.stdout
        if self.rc is not None:
            result["rc"] = self.rc
        if self.msg:
            result["msg"] = self.msg
        return result


@dataclass
class HostStats:
    """Statistics for a single host across all tasks."""

    host: str
    changed: int = 0
    unchanged: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, status: TaskStatus) -> None:
        """Record a task result status."""
        if status == TaskStatus.CHANGED:
            self.changed += 1
        elif status == TaskStatus.UNCHANGED:
            self.unchanged += 1
        elif status == TaskStatus.FAILED:
            self.failed += 1
        elif status == TaskStatus.SKIPPED:
            self.skipped += 1

    def merge(self, other: 'HostStats') -> None:
        """Merge another HostStats into this one."""
        self.changed += other.changed
        self.unchanged += other.unchanged
        self.failed += other.failed
        self.skipped += other.skipped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "changed": self.changed,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "skipped": self.skipped,
        }

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass
class PlayResult:
    """Result of running one playbook level (without its includes)."""

    playbook_name: str
    hosts: List[str]
    task_results: List[TaskResult] = field(default_factory=list)
    host_stats: Dict[str, HostStats] = field(default_factory=dict)

    def add_result(self, result: TaskResult) -> None:
        """Add a task result."""
        self.task_results.append(result)

        if result.host not in self.host_stats:
            self.host_stats[result.host] = HostStats(result.host)
        self.host_stats[result.host].record(result.status)

    @property
    def failures(self) -> List[TaskResult]:
        return [r for r in self.task_results if r.failed]

    @property
    def has_failures(self) -> bool:
        return any(s.has_failures for s in self.host_stats.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playbook": self.playbook_name,
            "hosts": self.hosts,
            "tasks": [r.to_dict() for r in self.task_results],
            "stats": {h: s.to_dict() for h, s in self.host_stats.items()},
        }


@dataclass
class PlaybookResult:
    """Result of an entire run, in execution order (includes first)."""

    playbook_path: str
    play_results: List[PlayResult] = field(default_factory=list)

    def add_play_result(self, result: PlayResult) -> None:
        self.play_results.append(result)

    def get_final_stats(self) -> Dict[str, HostStats]:
        """Get aggregated stats for all hosts across all playbook levels."""
        final_stats: Dict[str, HostStats] = {}

        for play_result in self.play_results:
            for host, stats in play_result.host_stats.items():
                if host not in final_stats:
                    final_stats[host] = HostStats(host)
                final_stats[host].merge(stats)

        return final_stats

    @property
    def failures(self) -> List[TaskResult]:
        """Every FAILED task result, in execution order."""
        return [r for p in self.play_results for r in p.failures]

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playbook": self.playbook_path,
            "levels": [p.to_dict() for p in self.play_results],
            "stats": {h: s.to_dict() for h, s in self.get_final_stats().items()},
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

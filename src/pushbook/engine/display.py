"""
Pushbook Display

Human-readable progress lines plus a structured per-task event stream.
"""

import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from pushbook.engine.results import HostStats, TaskResult, TaskStatus


@dataclass(frozen=True)
class TaskEvent:
    """One progress event: a task starting or finishing on a host."""

    host: str
    task: str
    # 'start', or a TaskStatus value
    status: str
    msg: str = ""


EventCallback = Callable[[TaskEvent], None]


class Display:
    """
    Console output for a run.

    Every line is written with a single print call, so concurrent workers
    never interleave within a line.
    """

    def __init__(self, json_output: bool = False, color: Optional[bool] = None):
        self.json_output = json_output
        self.color = sys.stdout.isatty() if color is None else color
        self.events: List[TaskEvent] = []
        self._subscribers: List[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> None:
        """Call ``callback`` with every TaskEvent from now on."""
        self._subscribers.append(callback)

    def _emit(self, event: TaskEvent) -> None:
        self.events.append(event)
        for callback in self._subscribers:
            callback(event)

    def task_start(self, task_name: str, host: str) -> None:
        self._emit(TaskEvent(host, task_name, 'start'))
        if not self.json_output:
            print(f"{task_name}: {host} - START")

    def task_result(self, result: TaskResult) -> None:
        self._emit(TaskEvent(result.host, result.task_name, result.status.value, result.msg))
        if self.json_output or result.status == TaskStatus.SKIPPED:
            return
        print(self._colorize(str(result), result.status))
        if result.failed and result.msg:
            self.error(f"  {result.msg}")

    def task_skipped(self, result: TaskResult) -> None:
        """Record a skipped task; skips produce no console lines."""
        self._emit(TaskEvent(result.host, result.task_name, result.status.value))

    def warning(self, msg: str) -> None:
        if not self.json_output:
            print(self._wrap(f"[WARNING]: {msg}", '\033[33m'), file=sys.stderr)

    def error(self, msg: str) -> None:
        # Errors go to stderr even in JSON mode
        print(self._wrap(msg, '\033[31m'), file=sys.stderr)

    def recap(self, host_stats: Dict[str, HostStats]) -> None:
        """Print final per-host counts."""
        if self.json_output:
            return

        print("\nRECAP " + "*" * 60)
        for host, stats in sorted(host_stats.items()):
            parts = [
                f"changed={stats.changed}",
                f"unchanged={stats.unchanged}",
                f"failed={stats.failed}",
                f"skipped={stats.skipped}",
            ]
            print(f"{host:40} : {'  '.join(parts)}")

    def _colorize(self, line: str, status: TaskStatus) -> str:
        colors = {
            TaskStatus.CHANGED: '\033[33m',
            TaskStatus.UNCHANGED: '\033[32m',
            TaskStatus.FAILED: '\033[31m',
        }
        return self._wrap(line, colors.get(status, ''))

    def _wrap(self, line: str, color: str) -> str:
        if not self.color or not color:
            return line
        return f"{color}{line}\033[0m"

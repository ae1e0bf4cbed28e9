"""
Pushbook Context

Per-host variable store, written by 'register' and read by 'when'
conditions and template rendering.
"""

from typing import Dict, Iterator, Mapping, Optional

from pushbook.engine.results import TaskResult


class Context(Mapping[str, str]):
    """
    Variable name -> string value.

    Each (playbook level, host) pair owns one Context, created with
    :meth:`copy` from the context handed down by the enclosing level.
    Contexts are never shared between hosts.
    """

    def __init__(self, variables: Optional[Mapping[str, str]] = None):
        self._vars: Dict[str, str] = dict(variables) if variables else {}

    def __getitem__(self, key: str) -> str:
        return self._vars[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Context({self._vars!r})"

    def set(self, key: str, value: str) -> None:
        self._vars[key] = str(value)

    def register(self, key: str, result: TaskResult) -> None:
        """Store a task's outcome tag ('changed', 'unchanged', 'failed') under key."""
        self._vars[key] = result.register_value

    def copy(self) -> 'Context':
        """Independent copy; writes to it are not seen by the original."""
        return Context(self._vars)

    def overlay(self, variables: Mapping[str, str]) -> 'Context':
        """Copy with ``variables`` merged on top, leaving this context untouched."""
        merged = self.copy()
        for key, value in variables.items():
            merged.set(key, value)
        return merged

    def get_vars(self) -> Dict[str, str]:
        """Plain dict of all variables, for templating."""
        return dict(self._vars)

# Copyright (c) 2024 Pushbook Contributors
# MIT License

"""
Pushbook Error Classes.

All custom exceptions for clear error handling and exit codes.
Execution errors keep their underlying cause through exception chaining
(``raise ... from exc``), so ``__cause__`` holds the original failure.
"""

from __future__ import annotations

import enum
from typing import List, Sequence


class ExitCode(enum.IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    GENERIC_ERROR = 1
    HOST_FAILED = 2
    LOAD_ERROR = 3
    KEYBOARD_INTERRUPT = 130


class PushbookError(Exception):
    """Base exception for all Pushbook errors."""

    exit_code: int = ExitCode.GENERIC_ERROR

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class LoadError(PushbookError):
    """Error loading an inventory or playbook document."""

    exit_code: int = ExitCode.LOAD_ERROR

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: str | None = None,
    ) -> None:
        self.file_path = file_path
        location = f" in {file_path}" if file_path else ""
        super().__init__(f"Load error{location}: {message}", details)


class CycleError(LoadError):
    """A playbook includes itself, directly or through other playbooks."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__(
            "include cycle detected",
            file_path=self.chain[-1] if self.chain else None,
            details=" -> ".join(self.chain),
        )


class ExecError(PushbookError):
    """Error executing a task against a host."""

    exit_code: int = ExitCode.HOST_FAILED

    def __init__(self, host: str, message: str, details: str | None = None) -> None:
        self.host = host
        super().__init__(f"{host}: {message}", details)

    def cause_chain(self) -> List[str]:
        """Return this error's message followed by every chained cause."""
        chain = [str(self)]
        cause = self.__cause__ or self.__context__
        while cause is not None:
            chain.append(f"{type(cause).__name__}: {cause}")
            cause = cause.__cause__ or cause.__context__
        return chain


class AuthError(ExecError):
    """Neither agent nor key-file authentication succeeded."""

    def __init__(self, host: str, user: str, key: str | None = None) -> None:
        self.user = user
        self.key = key
        super().__init__(
            host,
            f"authentication failed for user '{user}'",
            f"tried ssh-agent and key file {key}" if key else "tried ssh-agent",
        )


class TransportError(ExecError):
    """Connection, channel, file-transfer or local file I/O failure."""


class RenderError(ExecError):
    """Template syntax or evaluation failure."""

    def __init__(self, host: str, message: str, template: str | None = None) -> None:
        self.template = template
        details = None
        if template:
            # Truncate long templates
            details = "Template: " + (template[:100] + "..." if len(template) > 100 else template)
        super().__init__(host, f"Template error: {message}", details)


class PatternError(ExecError):
    """Invalid regular expression in a search_replace task."""

    def __init__(self, host: str, pattern: str, message: str) -> None:
        self.pattern = pattern
        super().__init__(host, f"invalid pattern {pattern!r}: {message}")


class HostFailedError(PushbookError):
    """One or more hosts failed and fail-fast mode halted the run."""

    exit_code: int = ExitCode.HOST_FAILED

    def __init__(self, failures: Sequence[tuple]) -> None:
        # failures: (host, task_name, message)
        self.failures = list(failures)
        lines = [f"{host} failed at task '{task}': {msg}" for host, task, msg in self.failures]
        super().__init__(f"{len(self.failures)} host(s) failed", "\n  ".join(lines))

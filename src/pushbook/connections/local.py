"""
Pushbook Local Session

Execute tasks on the control node (hosts with ``connection: local``).
"""

import asyncio
from pathlib import Path

from pushbook.connections.base import RemoteSession, RunResult
from pushbook.engine.errors import TransportError


class LocalSession(RemoteSession):
    """
    Local session - run commands and touch files on the control node.

    Credentials are accepted for interface compatibility and ignored.
    """

    _connected = False

    async def connect(self) -> None:
        """Local session is always available."""
        self._connected = True

    async def close(self) -> None:
        """Nothing to close for local session."""
        self._connected = False

    async def run(self, command: str) -> RunResult:
        """Run a command through the local shell."""
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except OSError as e:
            raise TransportError(self.host.address, f"command failed: {e}") from e

        return RunResult(
            rc=process.returncode or 0,
            stdout=stdout_bytes.decode('utf-8', errors='replace'),
            stderr=stderr_bytes.decode('utf-8', errors='replace'),
        )

    async def read_file(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise TransportError(self.host.address, f"cannot read {path}: {e}") from e

    async def write_file(self, path: str, data: bytes) -> None:
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            raise TransportError(self.host.address, f"cannot write {path}: {e}") from e

"""
Pushbook Remote Session Base Class

Abstract base class for all session types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from pushbook.config import RunConfig
from pushbook.engine.inventory import Host


@dataclass
class RunResult:
    """Result of running a command on a remote host."""

    rc: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.rc == 0


class RemoteSession(ABC):
    """
    An authenticated channel to one host.

    All session types (SSH, local) must implement this interface. Failures
    are raised as TransportError (or AuthError from connect).
    """

    def __init__(self, host: Host, user: str, key: str, config: Optional[RunConfig] = None):
        self.host = host
        self.user = user
        self.key = key
        self.config = config or RunConfig()

    @abstractmethod
    async def connect(self) -> None:
        """Establish and authenticate the session."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the session."""
        pass

    @abstractmethod
    async def run(self, command: str) -> RunResult:
        """
        Run a command on the remote host.

        Args:
            command: Command line, interpreted by the remote shell

        Returns:
            RunResult with rc, stdout, stderr
        """
        pass

    @abstractmethod
    async def read_file(self, path: str) -> bytes:
        """Return the full contents of a remote file."""
        pass

    @abstractmethod
    async def write_file(self, path: str, data: bytes) -> None:
        """Create or truncate a remote file and write ``data`` to it."""
        pass

    async def __aenter__(self) -> 'RemoteSession':
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


async def open_session(
    host: Host,
    user: str,
    key: str,
    config: Optional[RunConfig] = None,
) -> RemoteSession:
    """
    Create and connect the appropriate session for ``host``.

    Raises:
        AuthError: If authentication fails
        TransportError: If the host cannot be reached
    """
    if host.connection == 'local':
        from pushbook.connections.local import LocalSession
        session: RemoteSession = LocalSession(host, user, key, config)
    else:
        from pushbook.connections.ssh_asyncssh import SSHSession
        session = SSHSession(host, user, key, config)

    await session.connect()
    return session


class LazySession(RemoteSession):
    """
    Session that connects on first use.

    A worker hands the same LazySession to every task it runs, so a host
    gets at most one connection per playbook level and none at all when
    every task is skipped.
    """

    def __init__(
        self,
        host: Host,
        user: str,
        key: str,
        config: Optional[RunConfig] = None,
        factory: Callable[..., Awaitable[RemoteSession]] = open_session,
    ):
        super().__init__(host, user, key, config)
        self._factory = factory
        self._session: Optional[RemoteSession] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        if self._session is None:
            self._session = await self._factory(self.host, self.user, self.key, self.config)

    async def _inner(self) -> RemoteSession:
        await self.connect()
        assert self._session is not None
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            session, self._session = self._session, None
            await session.close()

    async def run(self, command: str) -> RunResult:
        return await (await self._inner()).run(command)

    async def read_file(self, path: str) -> bytes:
        return await (await self._inner()).read_file(path)

    async def write_file(self, path: str, data: bytes) -> None:
        await (await self._inner()).write_file(path, data)

"""
Shared fixtures: in-memory remote sessions and playbook/inventory files.
"""

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from pushbook.config import RunConfig
from pushbook.connections.base import RemoteSession, RunResult
from pushbook.engine.display import Display
from pushbook.engine.errors import AuthError, TransportError
from pushbook.engine.executor import TaskExecutor
from pushbook.engine.inventory import Host


class FakeSession(RemoteSession):
    """Remote session backed by a dict of files; commands are echoed."""

    def __init__(self, host: Host, user: str = "deploy", key: str = "~/.ssh/id_rsa",
                 config: Optional[RunConfig] = None, fleet: Optional['FakeFleet'] = None):
        super().__init__(host, user, key, config)
        self.fleet = fleet or FakeFleet()
        self.commands: List[str] = []
        self.connected = False
        self.closed = False

    @property
    def files(self) -> Dict[str, bytes]:
        return self.fleet.files.setdefault(self.host.address, {})

    async def connect(self) -> None:
        if self.host.address in self.fleet.unreachable:
            raise TransportError(self.host.address, "connection refused")
        if self.host.address in self.fleet.bad_auth:
            raise AuthError(self.host.address, self.user, self.key)
        if self.host.address in self.fleet.broken:
            raise RuntimeError(f"session factory bug for {self.host.address}")
        self.connected = True

    async def close(self) -> None:
        self.closed = True

    async def run(self, command: str) -> RunResult:
        self.commands.append(command)
        self.fleet.log.append((self.host.address, command))
        self.fleet.active += 1
        self.fleet.max_active = max(self.fleet.max_active, self.fleet.active)
        try:
            if self.fleet.delay:
                await asyncio.sleep(self.fleet.delay)
        finally:
            self.fleet.active -= 1
        if command.startswith("echo "):
            return RunResult(rc=0, stdout=command[5:] + "\n", stderr="")
        if command == "false":
            return RunResult(rc=1, stdout="", stderr="")
        return RunResult(rc=0, stdout="", stderr="")

    async def read_file(self, path: str) -> bytes:
        try:
            return self.files[path]
        except KeyError:
            raise TransportError(self.host.address, f"cannot read {path}: no such file")

    async def write_file(self, path: str, data: bytes) -> None:
        self.files[path] = data


class FakeFleet:
    """Session factory that records every session it opens."""

    def __init__(self):
        self.files: Dict[str, Dict[str, bytes]] = {}
        self.sessions: List[FakeSession] = []
        self.log: List[tuple] = []
        self.unreachable: set = set()
        self.bad_auth: set = set()
        self.broken: set = set()
        self.delay: float = 0.0
        self.active = 0
        self.max_active = 0

    async def __call__(self, host: Host, user: str, key: str,
                       config: Optional[RunConfig] = None) -> FakeSession:
        session = FakeSession(host, user, key, config, fleet=self)
        await session.connect()
        self.sessions.append(session)
        return session

    def commands_for(self, address: str) -> List[str]:
        return [cmd for host, cmd in self.log if host == address]


@pytest.fixture
def fleet() -> FakeFleet:
    return FakeFleet()


@pytest.fixture
def display() -> Display:
    return Display(color=False)


@pytest.fixture
def make_executor(fleet, display) -> Callable[..., TaskExecutor]:
    def factory(**config_kwargs) -> TaskExecutor:
        return TaskExecutor(
            config=RunConfig(**config_kwargs),
            display=display,
            session_factory=fleet,
        )
    return factory


@pytest.fixture
def write_file(tmp_path) -> Callable[[str, str], Path]:
    """Write a text file under tmp_path and return its path."""
    def writer(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
    return writer


@pytest.fixture
def inventory_file(write_file) -> Path:
    return write_file("hosts.yml", """
global_config:
  user: deploy
  key: ~/.ssh/id_rsa
hosts:
  - address: web1
  - address: web2
    user: admin
  - address: db1
    key: /keys/db
""")

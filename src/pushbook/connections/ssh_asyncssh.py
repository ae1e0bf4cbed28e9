"""
Pushbook SSH Session (asyncssh)

SSH session using asyncssh for commands and SFTP for file transfer.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import asyncssh

from pushbook.config import RunConfig
from pushbook.connections.base import RemoteSession, RunResult
from pushbook.engine.errors import AuthError, TransportError
from pushbook.engine.inventory import Host

logger = logging.getLogger(__name__)


class SSHSession(RemoteSession):
    """
    SSH session using asyncssh.

    Authentication tries the ssh-agent first and falls back to the
    configured private key file.
    """

    def __init__(self, host: Host, user: str, key: str, config: Optional[RunConfig] = None):
        super().__init__(host, user, key, config)
        self._conn: Optional[asyncssh.SSHClientConnection] = None
        self._sftp: Optional[asyncssh.SFTPClient] = None

    def _connect_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            'host': self.host.address,
            'port': self.config.port,
            'username': self.user,
            'connect_timeout': self.config.connect_timeout,
        }
        if not self.config.host_key_checking:
            options['known_hosts'] = None
        return options

    async def connect(self) -> None:
        """Establish the SSH connection, agent auth first, then the key file."""
        options = self._connect_options()
        address = self.host.address

        agent_path = os.environ.get('SSH_AUTH_SOCK')
        if agent_path:
            try:
                self._conn = await asyncssh.connect(**options, agent_path=agent_path)
                logger.debug("%s: authenticated via ssh-agent as %s", address, self.user)
                return
            except asyncssh.PermissionDenied:
                logger.debug("%s: ssh-agent authentication failed, trying key file", address)
            except (OSError, asyncssh.Error) as e:
                raise TransportError(address, f"connection failed: {e}") from e

        key_path = str(Path(self.key).expanduser())
        try:
            self._conn = await asyncssh.connect(
                **options,
                agent_path=None,
                client_keys=[key_path],
            )
        except asyncssh.PermissionDenied as e:
            raise AuthError(address, self.user, key_path) from e
        except (OSError, asyncssh.Error, ValueError) as e:
            # ValueError/KeyImportError: unreadable private key
            raise TransportError(address, f"connection failed: {e}") from e
        logger.debug("%s: authenticated with key %s as %s", address, key_path, self.user)

    async def close(self) -> None:
        """Close SSH connection."""
        if self._sftp:
            self._sftp.exit()
            self._sftp = None

        if self._conn:
            self._conn.close()
            await self._conn.wait_closed()
            self._conn = None

    def _require_connection(self) -> asyncssh.SSHClientConnection:
        if self._conn is None:
            raise TransportError(self.host.address, "not connected")
        return self._conn

    async def run(self, command: str) -> RunResult:
        """Run a command over an SSH exec channel."""
        conn = self._require_connection()
        try:
            result = await conn.run(command, check=False)
        except (OSError, asyncssh.Error) as e:
            raise TransportError(self.host.address, f"command failed: {e}") from e

        return RunResult(
            rc=result.exit_status or 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    async def _get_sftp(self) -> asyncssh.SFTPClient:
        """Get or create SFTP client."""
        if self._sftp is None:
            conn = self._require_connection()
            try:
                self._sftp = await conn.start_sftp_client()
            except (OSError, asyncssh.Error) as e:
                raise TransportError(self.host.address, f"SFTP unavailable: {e}") from e
        return self._sftp

    async def read_file(self, path: str) -> bytes:
        sftp = await self._get_sftp()
        try:
            async with sftp.open(path, 'rb') as f:
                return await f.read()
        except (OSError, asyncssh.Error) as e:
            raise TransportError(self.host.address, f"cannot read {path}: {e}") from e

    async def write_file(self, path: str, data: bytes) -> None:
        sftp = await self._get_sftp()
        try:
            async with sftp.open(path, 'wb') as f:
                await f.write(data)
        except (OSError, asyncssh.Error) as e:
            raise TransportError(self.host.address, f"cannot write {path}: {e}") from e

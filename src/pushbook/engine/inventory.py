"""
Pushbook Inventory

Host inventory model and loaders for YAML files and discovery scripts.

An inventory document looks like::

    global_config:
      user: deploy
      key: ~/.ssh/id_ed25519
    hosts:
      - address: web1
      - address: web2
        user: admin
        key: ~/.ssh/admin_key
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from pushbook.engine.errors import LoadError

logger = logging.getLogger(__name__)

CONNECTION_TYPES = ('ssh', 'local')


@dataclass(frozen=True)
class GlobalConfig:
    """Default credentials for every host."""

    user: str
    key: str

    @classmethod
    def from_dict(cls, data: Any, source: Optional[str] = None) -> 'GlobalConfig':
        if not isinstance(data, dict):
            raise LoadError("credential config must be a mapping with 'user' and 'key'", file_path=source)
        missing = [k for k in ('user', 'key') if k not in data]
        if missing:
            raise LoadError(f"credential config missing {', '.join(missing)}", file_path=source)
        return cls(user=str(data['user']), key=str(data['key']))


@dataclass(frozen=True)
class Host:
    """A single managed endpoint, identified by its address."""

    address: str
    user: Optional[str] = None
    key: Optional[str] = None
    connection: str = 'ssh'

    def credentials(
        self,
        global_config: GlobalConfig,
        local_config: Optional[GlobalConfig] = None,
    ) -> Tuple[str, str]:
        """
        Resolve the effective (user, key) pair.

        Host overrides win, then the playbook's local_config, then the
        inventory's global_config.
        """
        fallback = local_config or global_config
        return (self.user or fallback.user, self.key or fallback.key)

    def __str__(self) -> str:
        return self.address


@dataclass
class HostInventory:
    """Global credentials plus the ordered list of hosts."""

    global_config: GlobalConfig
    hosts: List[Host] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen = set()
        for host in self.hosts:
            if host.address in seen:
                raise LoadError(f"duplicate host address: {host.address}")
            seen.add(host.address)

    def get_host(self, address: str) -> Optional[Host]:
        for host in self.hosts:
            if host.address == address:
                return host
        return None

    def match(self, addresses: List[str]) -> List[Host]:
        """Hosts whose address is in ``addresses``, in inventory order."""
        wanted = set(addresses)
        return [h for h in self.hosts if h.address in wanted]

    @classmethod
    def from_dict(cls, data: Any, source: Optional[str] = None) -> 'HostInventory':
        """Build an inventory from an already-deserialized document."""
        if not isinstance(data, dict):
            raise LoadError("inventory must be a mapping", file_path=source)
        if 'global_config' not in data:
            raise LoadError("inventory missing required 'global_config'", file_path=source)

        global_config = GlobalConfig.from_dict(data['global_config'], source)

        hosts_data = data.get('hosts') or []
        if not isinstance(hosts_data, list):
            raise LoadError("'hosts' must be a list", file_path=source)

        hosts: List[Host] = []
        for entry in hosts_data:
            if not isinstance(entry, dict) or 'address' not in entry:
                raise LoadError(f"host entry must be a mapping with 'address': {entry!r}", file_path=source)
            if any(h.address == str(entry['address']) for h in hosts):
                raise LoadError(f"duplicate host address: {entry['address']}", file_path=source)
            connection = entry.get('connection', 'ssh')
            if connection not in CONNECTION_TYPES:
                raise LoadError(f"unknown connection type '{connection}' for {entry['address']}", file_path=source)
            hosts.append(Host(
                address=str(entry['address']),
                user=entry.get('user'),
                key=entry.get('key'),
                connection=connection,
            ))

        return cls(global_config=global_config, hosts=hosts)

    @classmethod
    def from_yaml(cls, content: Union[str, bytes], source: Optional[str] = None) -> 'HostInventory':
        """Parse an inventory from YAML text or raw bytes."""
        if isinstance(content, bytes):
            try:
                content = content.decode('utf-8')
            except UnicodeDecodeError as e:
                raise LoadError(f"inventory is not valid UTF-8: {e}", file_path=source)
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise LoadError(f"YAML syntax error: {e}", file_path=source)
        return cls.from_dict(data, source)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'HostInventory':
        """Load a static inventory file."""
        path = Path(path)
        if not path.is_file():
            raise LoadError(f"Inventory not found: {path}", file_path=str(path))
        try:
            content = path.read_bytes()
        except OSError as e:
            raise LoadError(f"cannot read inventory: {e}", file_path=str(path))
        return cls.from_yaml(content, str(path))

    @classmethod
    def from_script(cls, path: Union[str, Path], timeout: Optional[float] = 60) -> 'HostInventory':
        """
        Run a discovery script and parse its standard output as an inventory.

        Args:
            path: Executable that prints an inventory document
            timeout: Seconds to wait for the script

        Raises:
            LoadError: If the script cannot run, exits non-zero, or prints
                something that is not an inventory
        """
        script = str(path)
        logger.debug("running inventory script %s", script)
        try:
            proc = subprocess.run(
                [script],
                capture_output=True,
                timeout=timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise LoadError(f"failed to execute inventory script: {e}", file_path=script)

        if proc.returncode != 0:
            stderr = proc.stderr.decode('utf-8', errors='replace').strip()
            raise LoadError(
                f"inventory script exited with status {proc.returncode}",
                file_path=script,
                details=stderr[:200] or None,
            )
        return cls.from_yaml(proc.stdout, script)

    def to_dict(self) -> Dict[str, Any]:
        hosts = []
        for host in self.hosts:
            entry: Dict[str, Any] = {'address': host.address}
            if host.user:
                entry['user'] = host.user
            if host.key:
                entry['key'] = host.key
            if host.connection != 'ssh':
                entry['connection'] = host.connection
            hosts.append(entry)
        return {
            'global_config': {'user': self.global_config.user, 'key': self.global_config.key},
            'hosts': hosts,
        }

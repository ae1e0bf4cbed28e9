"""
Pushbook Configuration

Run-wide settings: concurrency cap, failure policy, timeouts and SSH options.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml

from pushbook.engine.errors import LoadError


@dataclass
class RunConfig:
    """
    Configuration for a playbook run.

    Attributes:
        forks: Maximum number of hosts worked on at once (None = one worker
            per matched host, no cap)
        fail_fast: Halt the run after a playbook level in which any host failed
        connect_timeout: Seconds allowed to establish an SSH connection
        task_timeout: Seconds allowed for a single task (None = no limit)
        port: SSH port
        host_key_checking: Verify host keys against known_hosts
        json_output: Print a JSON report instead of the recap
    """

    forks: Optional[int] = None
    fail_fast: bool = False
    connect_timeout: float = 30.0
    task_timeout: Optional[float] = None
    port: int = 22
    host_key_checking: bool = True
    json_output: bool = False

    def __post_init__(self) -> None:
        if self.forks is not None and self.forks < 1:
            raise ValueError(f"forks must be at least 1, got {self.forks}")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'RunConfig':
        """Load settings from a YAML mapping; unknown keys are rejected."""
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"cannot read config: {e}", file_path=str(path))
        except yaml.YAMLError as e:
            raise LoadError(f"YAML syntax error: {e}", file_path=str(path))

        if not isinstance(data, dict):
            raise LoadError("config must be a mapping", file_path=str(path))

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise LoadError(f"unknown config key(s): {', '.join(unknown)}", file_path=str(path))

        try:
            return cls(**data)
        except (TypeError, ValueError) as e:
            raise LoadError(str(e), file_path=str(path))


# Default configuration
_config = RunConfig()


def get_config() -> RunConfig:
    """Get the current run configuration."""
    return _config


def set_config(config: RunConfig) -> None:
    """Set the run configuration."""
    global _config
    _config = config


def configure(**kwargs) -> None:
    """Update individual settings of the current configuration."""
    for key, value in kwargs.items():
        if not hasattr(_config, key):
            raise AttributeError(f"unknown setting: {key}")
        setattr(_config, key, value)

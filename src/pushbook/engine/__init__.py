"""
Pushbook Engine Module

Core engine for loading and running playbooks. The scheduler, executor
and runner are imported from their own modules.
"""

from pushbook.engine.errors import (
    PushbookError,
    LoadError,
    CycleError,
    ExecError,
    AuthError,
    TransportError,
    RenderError,
    PatternError,
    HostFailedError,
)
from pushbook.engine.inventory import GlobalConfig, Host, HostInventory
from pushbook.engine.playbook import PlaybookParser, Playbook, Include, Task

__all__ = [
    'GlobalConfig',
    'Host',
    'HostInventory',
    'PlaybookParser',
    'Playbook',
    'Include',
    'Task',
    'PushbookError',
    'LoadError',
    'CycleError',
    'ExecError',
    'AuthError',
    'TransportError',
    'RenderError',
    'PatternError',
    'HostFailedError',
]

"""
Pushbook Connections Module

Remote session implementations for SSH and the local control node.
"""

from pushbook.connections.base import LazySession, RemoteSession, RunResult, open_session
from pushbook.connections.local import LocalSession

__all__ = [
    'LazySession',
    'RemoteSession',
    'RunResult',
    'LocalSession',
    'open_session',
]

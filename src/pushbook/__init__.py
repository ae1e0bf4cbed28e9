# Copyright (c) 2024 Pushbook Contributors
# MIT License

"""
Pushbook: Minimal push-based playbook orchestrator.

Describe a set of hosts and an ordered list of tasks, and pushbook connects
to each host over SSH and applies the tasks, threading a per-host variable
context between steps.

Features:
    - Recursive playbook composition via includes
    - One concurrent worker per matched host (asyncio)
    - shell, copy, template and search_replace tasks
    - Tag filtering, Jinja2 'when' conditions and 'register'

This package exposes the release metadata.
"""

from __future__ import annotations

from pushbook.release import __version__, __author__

__all__ = [
    "__version__",
    "__author__",
]

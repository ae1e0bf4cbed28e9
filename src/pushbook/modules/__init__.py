"""
Pushbook Modules

Implementations of the shell, copy, template and search_replace task kinds.
"""

from pushbook.modules.base import Module, ModuleResult, get_module, module_for

__all__ = [
    'Module',
    'ModuleResult',
    'get_module',
    'module_for',
]

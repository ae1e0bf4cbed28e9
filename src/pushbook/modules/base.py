"""
Pushbook Module Base

Base class and registry for the task kind implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Generic, Optional, Type, TypeVar

from pushbook.connections.base import RemoteSession
from pushbook.engine.context import Context
from pushbook.engine.errors import ExecError, TransportError
from pushbook.engine.inventory import Host
from pushbook.engine.playbook import TaskKind
from pushbook.engine.templating import TemplateEngine, get_template_engine


K = TypeVar('K')


@dataclass
class ModuleResult:
    """Result of module execution."""

    changed: bool = False
    stdout: str = ""
    rc: Optional[int] = None
    msg: str = ""


class Module(ABC, Generic[K]):
    """
    Base class for all modules.

    A module performs one task kind's side effect through a remote session.
    Failures are raised as ExecError subclasses.
    """

    # Task kind name (used for registration)
    name: str = ""

    def __init__(
        self,
        kind: K,
        session: RemoteSession,
        context: Context,
        host: Host,
        templates: Optional[TemplateEngine] = None,
    ):
        self.kind = kind
        self.session = session
        self.context = context
        self.host = host
        self.templates = templates or get_template_engine()

    def read_local(self, path: str) -> bytes:
        """Read a file on the control node."""
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise TransportError(self.host.address, f"cannot read local file {path}: {e}") from e

    def decode(self, data: bytes, path: str) -> str:
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ExecError(self.host.address, f"{path} is not valid UTF-8: {e}") from e

    @abstractmethod
    async def run(self) -> ModuleResult:
        """
        Execute the module.

        Returns:
            ModuleResult with execution outcome
        """
        pass


# Module registry
_modules: Dict[str, Type[Module]] = {}
_modules_imported = False


def register_module(cls: Type[Module]) -> Type[Module]:
    """Decorator to register a module class."""
    _modules[cls.name] = cls
    return cls


def get_module(name: str) -> Optional[Type[Module]]:
    """Get a module class by task kind name."""
    _ensure_modules_imported()
    return _modules.get(name)


def module_for(kind: TaskKind) -> Type[Module]:
    """Module class implementing ``kind``."""
    module_class = get_module(kind.kind)
    if module_class is None:
        raise KeyError(f"no module registered for task kind '{kind.kind}'")
    return module_class


def list_modules() -> list:
    """List all registered module names."""
    _ensure_modules_imported()
    return list(_modules.keys())


def _ensure_modules_imported() -> None:
    """Ensure all modules have been imported."""
    global _modules_imported
    if not _modules_imported:
        _import_builtin_modules()
        _modules_imported = True


def _import_builtin_modules() -> None:
    """Import all built-in modules to register them."""
    # These imports trigger the @register_module decorators
    from pushbook.modules import shell  # noqa: F401
    from pushbook.modules import copy  # noqa: F401
    from pushbook.modules import template  # noqa: F401
    from pushbook.modules import search_replace  # noqa: F401

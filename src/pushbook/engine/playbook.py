"""
Pushbook Playbook Parser

Parses YAML playbooks into Playbook, Include and Task objects.

A playbook document looks like::

    name: web tier
    include:
      - file: common.yml
        tags: [base]
    hosts: [web1, web2]
    tasks:
      - shell:
          name: uptime
          command: uptime
        register: up
      - search_replace:
          name: listen port
          path: /etc/app.conf
          search: "port = \\d+"
          replace: "port = 8080"
        tags: [config]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, NoReturn, Optional, Union

import yaml

from pushbook.engine.errors import LoadError
from pushbook.engine.inventory import GlobalConfig


@dataclass
class ShellTask:
    """Run a command remotely and capture its standard output."""

    kind: ClassVar[str] = 'shell'

    name: str
    command: str
    # Standard output of the last execution
    result: str = field(default='', compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass
class CopyTask:
    """Copy a local file (or, with remote_src, a remote file) to a remote path."""

    kind: ClassVar[str] = 'copy'

    name: str
    src: str
    dest: str
    remote_src: bool = False

    def __str__(self) -> str:
        return self.name


@dataclass
class TemplateTask:
    """Render a local Jinja2 template and write it to a remote path."""

    kind: ClassVar[str] = 'template'

    name: str
    src: str
    dest: str
    variables: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.name


@dataclass
class SearchReplaceTask:
    """Regex search/replace over the whole of a remote file."""

    kind: ClassVar[str] = 'search_replace'

    name: str
    path: str
    search: str
    replace: str

    def __str__(self) -> str:
        return self.name


TaskKind = Union[ShellTask, CopyTask, TemplateTask, SearchReplaceTask]

TASK_KINDS = {
    cls.kind: cls
    for cls in (ShellTask, CopyTask, TemplateTask, SearchReplaceTask)
}

# Required fields per task kind
REQUIRED_FIELDS = {
    'shell': ('name', 'command'),
    'copy': ('name', 'src', 'dest'),
    'template': ('name', 'src', 'dest'),
    'search_replace': ('name', 'path', 'search', 'replace'),
}

# Task keys that are NOT task kinds
TASK_KEYWORDS = {'tags', 'register', 'when'}


@dataclass
class Task:
    """A task kind plus its tags, register key and 'when' guard."""

    kind: TaskKind
    tags: Optional[List[str]] = None
    register: Optional[str] = None
    when: Optional[str] = None

    @property
    def name(self) -> str:
        return self.kind.name

    def __str__(self) -> str:
        return self.kind.name


@dataclass
class Include:
    """A reference to another playbook, run before the including playbook's tasks."""

    file: Path
    tags: Optional[List[str]] = None
    when: Optional[str] = None


@dataclass
class Playbook:
    """Target hosts, ordered tasks, and playbooks to run first."""

    hosts: List[str]
    tasks: List[Task] = field(default_factory=list)
    name: Optional[str] = None
    include: List[Include] = field(default_factory=list)
    local_config: Optional[GlobalConfig] = None
    # File this playbook was loaded from
    path: Optional[Path] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.path:
            return str(self.path)
        return 'playbook'

    def __repr__(self) -> str:
        return f"Playbook(name={self.display_name!r}, hosts={self.hosts!r}, tasks={len(self.tasks)})"


class PlaybookParser:
    """
    Parse YAML playbook files into Playbook objects.

    Relative include files and relative local 'src' paths are resolved
    against the directory of the playbook that declares them.
    """

    def __init__(self, playbook_path: Union[str, Path]):
        self.playbook_path = Path(playbook_path)
        self._base_dir = self.playbook_path.parent

    def parse(self) -> Playbook:
        """
        Parse the playbook file.

        Returns:
            The Playbook

        Raises:
            LoadError: If the file is missing, unreadable, not UTF-8, not
                YAML, or does not describe a playbook
        """
        if not self.playbook_path.is_file():
            raise LoadError(
                f"Playbook not found: {self.playbook_path}",
                file_path=str(self.playbook_path)
            )

        try:
            content = self.playbook_path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            raise LoadError(f"playbook is not valid UTF-8: {e}", file_path=str(self.playbook_path))
        except OSError as e:
            raise LoadError(f"cannot read playbook: {e}", file_path=str(self.playbook_path))

        return self.parse_string(content)

    def parse_string(self, content: str) -> Playbook:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise LoadError(
                f"YAML syntax error: {e}",
                file_path=str(self.playbook_path)
            )
        return self.parse_data(data)

    def parse_data(self, data: Any) -> Playbook:
        """Build a Playbook from an already-deserialized document."""
        if not isinstance(data, dict):
            self._fail("playbook must be a mapping")

        if 'hosts' not in data:
            self._fail("playbook missing required 'hosts' field")
        if 'tasks' not in data:
            self._fail("playbook missing required 'tasks' field")

        tasks_data = data['tasks'] or []
        if not isinstance(tasks_data, list):
            self._fail("'tasks' must be a list")

        local_config = None
        if data.get('local_config') is not None:
            local_config = GlobalConfig.from_dict(data['local_config'], str(self.playbook_path))

        name = data.get('name')
        return Playbook(
            name=str(name) if name is not None else None,
            hosts=[str(h) for h in self._ensure_list(data['hosts'])],
            include=[self._parse_include(entry) for entry in self._ensure_list(data.get('include'))],
            local_config=local_config,
            tasks=[self._parse_task(entry) for entry in tasks_data],
            path=self.playbook_path,
        )

    def _parse_include(self, data: Any) -> Include:
        if isinstance(data, str):
            data = {'file': data}
        if not isinstance(data, dict) or not data.get('file'):
            self._fail(f"include entry requires a 'file': {data!r}")

        return Include(
            file=self._resolve(data['file']),
            tags=self._optional_tags(data.get('tags')),
            when=self._normalize_when(data.get('when')),
        )

    def _parse_task(self, data: Any) -> Task:
        """Parse a single task from YAML data."""
        if not isinstance(data, dict):
            self._fail(f"task must be a mapping: {data!r}")

        kind_keys = [key for key in data if key not in TASK_KEYWORDS]
        unknown = [key for key in kind_keys if key not in TASK_KINDS]
        if unknown:
            self._fail(
                f"unknown task kind '{unknown[0]}'",
                details=f"supported kinds: {', '.join(sorted(TASK_KINDS))}",
            )
        if len(kind_keys) != 1:
            self._fail(f"task must have exactly one task kind, found {kind_keys or 'none'}")

        kind_name = kind_keys[0]
        register = data.get('register')

        return Task(
            kind=self._parse_kind(kind_name, data[kind_name]),
            tags=self._optional_tags(data.get('tags')),
            register=str(register) if register is not None else None,
            when=self._normalize_when(data.get('when')),
        )

    def _parse_kind(self, kind_name: str, args: Any) -> TaskKind:
        if not isinstance(args, dict):
            self._fail(f"'{kind_name}' task arguments must be a mapping")

        missing = [f for f in REQUIRED_FIELDS[kind_name] if args.get(f) is None]
        if missing:
            self._fail(f"'{kind_name}' task missing required field(s): {', '.join(missing)}")

        if kind_name == 'shell':
            return ShellTask(name=str(args['name']), command=str(args['command']))

        if kind_name == 'copy':
            remote_src = bool(args.get('remote_src') or False)
            src = str(args['src']) if remote_src else str(self._resolve(args['src']))
            return CopyTask(
                name=str(args['name']),
                src=src,
                dest=str(args['dest']),
                remote_src=remote_src,
            )

        if kind_name == 'template':
            variables = args.get('variables') or {}
            if not isinstance(variables, dict):
                self._fail("'template' variables must be a mapping")
            return TemplateTask(
                name=str(args['name']),
                src=str(self._resolve(args['src'])),
                dest=str(args['dest']),
                variables={str(k): str(v) for k, v in variables.items()},
            )

        return SearchReplaceTask(
            name=str(args['name']),
            path=str(args['path']),
            search=str(args['search']),
            replace=str(args['replace']),
        )

    def _resolve(self, value: Any) -> Path:
        path = Path(str(value)).expanduser()
        if path.is_absolute():
            return path
        return self._base_dir / path

    def _optional_tags(self, value: Any) -> Optional[List[str]]:
        """Tags stay None when absent; a bare string becomes a one-item list."""
        if value is None:
            return None
        return [str(tag) for tag in self._ensure_list(value)]

    def _normalize_when(self, when: Any) -> Optional[str]:
        if when is None or isinstance(when, str):
            return when
        # Handle list of conditions (AND them together)
        if isinstance(when, list):
            return ' and '.join(f"({w})" for w in when)
        return str(when)

    def _ensure_list(self, value: Any) -> List[Any]:
        """Ensure a value is a list."""
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    def _fail(self, message: str, details: Optional[str] = None) -> NoReturn:
        raise LoadError(message, file_path=str(self.playbook_path), details=details)


def load_playbook(path: Union[str, Path]) -> Playbook:
    """Convenience function to parse a playbook file."""
    return PlaybookParser(path).parse()

"""
Pushbook search_replace module

Replace all matches of a regular expression within a remote file.

The replacement text refers to capture groups as ``$1``, ``$name`` or
``${name}``; ``$$`` is a literal dollar sign. Everything else, backslashes
included, is copied as-is. A reference to a group that does not exist or
did not take part in the match expands to nothing.
"""

import re
from typing import Callable, List, Union

from pushbook.engine.errors import PatternError
from pushbook.engine.playbook import SearchReplaceTask
from pushbook.modules.base import Module, ModuleResult, register_module

# $name (longest run of word characters), ${name}, or $$
_GROUP_REF = re.compile(r'\$(?:\$|\{([^}]+)\}|([_0-9A-Za-z]+))')


class GroupRef(str):
    """Group name parsed out of a replacement string."""


def parse_replacement(template: str) -> List[Union[str, GroupRef, int]]:
    """Split a replacement string into literal text and group references."""
    parts: List[Union[str, GroupRef, int]] = []
    literal: List[str] = []
    pos = 0

    for ref in _GROUP_REF.finditer(template):
        literal.append(template[pos:ref.start()])
        pos = ref.end()
        name = ref.group(1) or ref.group(2)
        if name is None:
            literal.append('$')
            continue
        if literal:
            parts.append(''.join(literal))
            literal = []
        parts.append(int(name) if name.isdigit() else GroupRef(name))

    literal.append(template[pos:])
    tail = ''.join(literal)
    if tail:
        parts.append(tail)
    return parts


def expand_replacement(template: str) -> Callable[['re.Match[str]'], str]:
    """Build a ``re.sub`` callable that expands ``template`` for each match."""
    parts = parse_replacement(template)

    def expand(match: 're.Match[str]') -> str:
        out = []
        for part in parts:
            if isinstance(part, (int, GroupRef)):
                try:
                    out.append(match.group(part) or '')
                except IndexError:
                    pass
            else:
                out.append(part)
        return ''.join(out)

    return expand


@register_module
class SearchReplaceModule(Module[SearchReplaceTask]):
    """
    Replace every match of 'search' in a remote file with 'replace'.

    The file is only rewritten when the substitution changes its text, so
    re-running the task against already-replaced content is 'unchanged'.
    """

    name = "search_replace"

    async def run(self) -> ModuleResult:
        path = self.kind.path

        try:
            pattern = re.compile(self.kind.search)
        except re.error as e:
            raise PatternError(self.host.address, self.kind.search, str(e)) from e

        content = self.decode(await self.session.read_file(path), path)
        new_content, count = pattern.subn(expand_replacement(self.kind.replace), content)

        changed = new_content != content
        if changed:
            await self.session.write_file(path, new_content.encode('utf-8'))

        return ModuleResult(
            changed=changed,
            msg=f"{count} match(es) in {path}" if changed else f"Pattern unchanged in {path}",
        )

"""
Pushbook Playbook Resolver

Expands includes depth-first and runs each playbook level through the
scheduler.
"""

import logging
from pathlib import Path
from typing import Collection, Optional, Sequence

from pushbook.engine.context import Context
from pushbook.engine.errors import CycleError, LoadError, RenderError
from pushbook.engine.filters import combine_tags
from pushbook.engine.inventory import HostInventory
from pushbook.engine.playbook import Include, Playbook, PlaybookParser
from pushbook.engine.results import PlaybookResult
from pushbook.engine.scheduler import Scheduler

logger = logging.getLogger(__name__)


class PlaybookResolver:
    """
    Run a playbook and, before its own tasks, everything it includes.

    Every include is loaded and run to completion, recursively, before
    the including playbook's tasks start. Included playbooks match hosts
    with their own ``hosts`` list against the same inventory.
    """

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler

    async def resolve_and_run(
        self,
        playbook: Playbook,
        inventory: HostInventory,
        requested_tags: Optional[Collection[str]] = None,
        context: Optional[Context] = None,
        result: Optional[PlaybookResult] = None,
        _chain: Sequence[Path] = (),
    ) -> PlaybookResult:
        """
        Run ``playbook`` with its includes.

        Args:
            playbook: Playbook to run
            inventory: Inventory shared by every level
            requested_tags: Tag filter (None = run everything)
            context: Context inherited by this level's hosts
            result: Run result to append to (created if not given)

        Returns:
            The PlaybookResult, with levels in execution order

        Raises:
            LoadError: An included playbook is missing or malformed
            CycleError: A playbook (transitively) includes itself
            HostFailedError: fail_fast is set and a host failed
        """
        context = context or Context()
        if result is None:
            result = PlaybookResult(playbook_path=str(playbook.path or playbook.display_name))

        chain = list(_chain)
        if playbook.path is not None:
            chain.append(self._key(playbook.path))

        for include in playbook.include:
            if not self._include_enabled(include, context, playbook):
                logger.info("skipping include %s: condition is false", include.file)
                continue

            target = self._key(include.file)
            if target in chain:
                raise CycleError([str(p) for p in chain + [target]])

            logger.debug("including %s from %s", include.file, playbook.display_name)
            included = PlaybookParser(include.file).parse()

            await self.resolve_and_run(
                included,
                inventory,
                combine_tags(include.tags, requested_tags),
                context,
                result,
                chain,
            )

        await self.scheduler.run_playbook(playbook, inventory, requested_tags, context, result)
        return result

    def _include_enabled(self, include: Include, context: Context, playbook: Playbook) -> bool:
        """Evaluate an include's 'when' once, against the inherited context."""
        if not include.when:
            return True
        try:
            return self.scheduler.executor.templates.evaluate_when(include.when, context, host=include.file.name)
        except RenderError as e:
            raise LoadError(
                f"cannot evaluate include condition {include.when!r}: {e}",
                file_path=str(playbook.path) if playbook.path else None,
            ) from e

    @staticmethod
    def _key(path: Path) -> Path:
        return Path(path).expanduser().resolve()

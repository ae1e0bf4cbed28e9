"""
Pushbook Scheduler

Runs one playbook level: one concurrent worker per matching host, each
executing the task list sequentially.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Collection, List, Optional

from pushbook.config import RunConfig, get_config
from pushbook.connections.base import LazySession
from pushbook.engine.context import Context
from pushbook.engine.errors import ExecError, HostFailedError
from pushbook.engine.executor import TaskExecutor
from pushbook.engine.filters import should_run
from pushbook.engine.inventory import Host, HostInventory
from pushbook.engine.playbook import Playbook, Task
from pushbook.engine.results import PlaybookResult, PlayResult, TaskResult, TaskStatus

logger = logging.getLogger(__name__)


@dataclass
class HostWorker:
    """State owned by one host's worker for one playbook level."""

    host: Host
    context: Context
    session: LazySession
    failed: bool = False


class Scheduler:
    """
    Fan a playbook level out over its matching hosts.

    Workers run concurrently and never cancel each other; the scheduler
    waits for all of them. Concurrency is capped by ``config.forks`` when
    set. A host whose task raises ExecError reports FAILED for that task
    and stops; the other hosts carry on.
    """

    def __init__(
        self,
        executor: TaskExecutor,
        config: Optional[RunConfig] = None,
    ):
        self.executor = executor
        self.config = config or executor.config or get_config()

    @property
    def display(self):
        return self.executor.display

    def match_hosts(self, playbook: Playbook, inventory: HostInventory) -> List[Host]:
        """Inventory hosts whose address appears in the playbook's hosts list."""
        return inventory.match(playbook.hosts)

    async def run_playbook(
        self,
        playbook: Playbook,
        inventory: HostInventory,
        requested_tags: Optional[Collection[str]] = None,
        base_context: Optional[Context] = None,
        result: Optional[PlaybookResult] = None,
    ) -> PlayResult:
        """
        Run ``playbook``'s own tasks (not its includes) on every matching host.

        Args:
            playbook: The playbook level to run
            inventory: Inventory to match hosts against
            requested_tags: Run-wide tag filter (None = no filter)
            base_context: Context inherited from the enclosing level; each
                host works on its own copy
            result: Run result to record this level into

        Returns:
            PlayResult for this level

        Raises:
            HostFailedError: With fail_fast set, after all workers finished,
                if any host failed
            Exception: Any non-ExecError raised by a worker, re-raised only
                after every worker has finished
        """
        base_context = base_context or Context()
        hosts = self.match_hosts(playbook, inventory)

        play_result = PlayResult(
            playbook_name=playbook.display_name,
            hosts=[h.address for h in hosts],
        )
        if result is not None:
            result.add_play_result(play_result)

        if not hosts:
            self.display.warning(f"No hosts matched for {playbook.display_name}: {playbook.hosts}")
            return play_result

        logger.info("running %s on %d host(s)", playbook.display_name, len(hosts))

        workers = [
            self._make_worker(host, playbook, inventory, base_context)
            for host in hosts
        ]

        semaphore = asyncio.Semaphore(self.config.forks) if self.config.forks else None

        async def run_limited(worker: HostWorker) -> None:
            if semaphore is None:
                await self._run_worker(worker, playbook, inventory, requested_tags, play_result)
                return
            async with semaphore:
                await self._run_worker(worker, playbook, inventory, requested_tags, play_result)

        outcomes = await asyncio.gather(
            *(run_limited(w) for w in workers),
            return_exceptions=True,
        )
        # ExecErrors are handled inside the workers; anything else is a bug
        # and is raised once every worker has finished
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        if self.config.fail_fast and play_result.has_failures:
            raise HostFailedError([
                (r.host, r.task_name, r.msg) for r in play_result.failures
            ])

        return play_result

    def _make_worker(
        self,
        host: Host,
        playbook: Playbook,
        inventory: HostInventory,
        base_context: Context,
    ) -> HostWorker:
        user, key = host.credentials(inventory.global_config, playbook.local_config)
        session = LazySession(
            host, user, key,
            config=self.config,
            factory=self.executor.session_factory,
        )
        return HostWorker(host=host, context=base_context.copy(), session=session)

    async def _run_worker(
        self,
        worker: HostWorker,
        playbook: Playbook,
        inventory: HostInventory,
        requested_tags: Optional[Collection[str]],
        play_result: PlayResult,
    ) -> None:
        async with AsyncExitStack() as stack:
            stack.push_async_callback(worker.session.close)

            for task in playbook.tasks:
                task_result = await self._run_task(worker, task, playbook, inventory, requested_tags)
                play_result.add_result(task_result)
                if task_result.failed:
                    worker.failed = True
                    break

    async def _run_task(
        self,
        worker: HostWorker,
        task: Task,
        playbook: Playbook,
        inventory: HostInventory,
        requested_tags: Optional[Collection[str]],
    ) -> TaskResult:
        address = worker.host.address
        templates = self.executor.templates

        try:
            run = should_run(
                task,
                worker.context,
                requested_tags,
                evaluator=lambda cond, variables: templates.evaluate_when(cond, variables, host=address),
            )
        except ExecError as e:
            self.display.task_start(task.name, address)
            return self._failed(worker, task, e)

        if not run:
            skipped = TaskResult(address, task.name, TaskStatus.SKIPPED, kind=task.kind)
            self.display.task_skipped(skipped)
            return skipped

        try:
            task_result = await self.executor.execute(
                task.kind,
                worker.host,
                worker.context,
                inventory.global_config,
                playbook.local_config,
                session=worker.session,
            )
        except ExecError as e:
            return self._failed(worker, task, e)

        if task.register:
            worker.context.register(task.register, task_result)
        return task_result

    def _failed(self, worker: HostWorker, task: Task, error: ExecError) -> TaskResult:
        logger.debug("%s: task '%s' failed: %s", worker.host.address, task.name, " <- ".join(error.cause_chain()))
        result = TaskResult(
            host=worker.host.address,
            task_name=task.name,
            status=TaskStatus.FAILED,
            kind=task.kind,
            msg=str(error),
        )
        if task.register:
            worker.context.register(task.register, result)
        self.display.task_result(result)
        return result

"""
Pushbook Task Executor

Runs one task kind against one host through a remote session.
"""

import asyncio
import dataclasses
import logging
from typing import Awaitable, Callable, Optional

from pushbook.config import RunConfig, get_config
from pushbook.connections.base import RemoteSession, open_session
from pushbook.engine.context import Context
from pushbook.engine.display import Display
from pushbook.engine.errors import TransportError
from pushbook.engine.inventory import GlobalConfig, Host
from pushbook.engine.playbook import ShellTask, TaskKind
from pushbook.engine.results import TaskResult, TaskStatus
from pushbook.engine.templating import TemplateEngine, get_template_engine
from pushbook.modules.base import ModuleResult, module_for

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Host, str, str, Optional[RunConfig]], Awaitable[RemoteSession]]


class TaskExecutor:
    """
    Execute task kinds against hosts.

    ``execute`` prints the START line, performs the side effect, prints
    the outcome line and returns the TaskResult. Any failure is raised as
    an ExecError; the caller decides how to report it.
    """

    def __init__(
        self,
        config: Optional[RunConfig] = None,
        display: Optional[Display] = None,
        template_engine: Optional[TemplateEngine] = None,
        session_factory: SessionFactory = open_session,
    ):
        self.config = config or get_config()
        self.display = display or Display(json_output=self.config.json_output)
        self.templates = template_engine or get_template_engine()
        self.session_factory = session_factory

    async def connect(
        self,
        host: Host,
        global_config: GlobalConfig,
        local_config: Optional[GlobalConfig] = None,
    ) -> RemoteSession:
        """Open an authenticated session using the host's effective credentials."""
        user, key = host.credentials(global_config, local_config)
        logger.debug("%s: opening %s session as %s", host.address, host.connection, user)
        return await self.session_factory(host, user, key, self.config)

    async def execute(
        self,
        task_kind: TaskKind,
        host: Host,
        context: Context,
        global_config: GlobalConfig,
        local_config: Optional[GlobalConfig] = None,
        session: Optional[RemoteSession] = None,
    ) -> TaskResult:
        """
        Run ``task_kind`` on ``host``.

        If no session is given, one is opened for this task and closed
        afterwards.

        Raises:
            ExecError: On connection, authentication, transfer, render or
                pattern failure, or when the task timeout expires
        """
        self.display.task_start(task_kind.name, host.address)

        owns_session = session is None
        if session is None:
            session = await self.connect(host, global_config, local_config)

        try:
            module_result = await self._run_module(task_kind, session, context, host)
        finally:
            if owns_session:
                await session.close()

        executed_kind: TaskKind = task_kind
        if isinstance(task_kind, ShellTask):
            executed_kind = dataclasses.replace(task_kind, result=module_result.stdout)

        result = TaskResult(
            host=host.address,
            task_name=task_kind.name,
            status=TaskStatus.CHANGED if module_result.changed else TaskStatus.UNCHANGED,
            kind=executed_kind,
            stdout=module_result.stdout,
            rc=module_result.rc,
            msg=module_result.msg,
        )
        self.display.task_result(result)
        return result

    async def _run_module(
        self,
        task_kind: TaskKind,
        session: RemoteSession,
        context: Context,
        host: Host,
    ) -> ModuleResult:
        module = module_for(task_kind)(task_kind, session, context, host, self.templates)

        timeout = self.config.task_timeout
        if timeout is None:
            return await module.run()

        try:
            return await asyncio.wait_for(module.run(), timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(
                host.address,
                f"task '{task_kind.name}' timed out after {timeout}s",
            ) from e

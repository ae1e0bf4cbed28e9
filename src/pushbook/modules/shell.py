"""
Pushbook shell module

Run a command on the remote host.
"""

from pushbook.engine.playbook import ShellTask
from pushbook.modules.base import Module, ModuleResult, register_module


@register_module
class ShellModule(Module[ShellTask]):
    """
    Execute a command through the remote shell and capture its stdout.

    There is no way to tell whether a command changed anything, so the
    result is always 'changed'. A non-zero exit status is recorded in rc
    and does not fail the task.
    """

    name = "shell"

    async def run(self) -> ModuleResult:
        result = await self.session.run(self.kind.command)
        return ModuleResult(
            changed=True,
            stdout=result.stdout,
            rc=result.rc,
            msg=result.stderr.strip() if not result.success else "",
        )

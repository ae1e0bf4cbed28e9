"""
Pushbook copy module

Copy files to remote hosts.
"""

from pushbook.engine.playbook import CopyTask
from pushbook.modules.base import Module, ModuleResult, register_module


@register_module
class CopyModule(Module[CopyTask]):
    """
    Copy a file to the remote host.

    With remote_src, both src and dest are paths on the remote host and
    the bytes are read back over SFTP first. Always reports 'changed'.
    """

    name = "copy"

    async def run(self) -> ModuleResult:
        src = self.kind.src
        dest = self.kind.dest

        if self.kind.remote_src:
            contents = await self.session.read_file(src)
        else:
            contents = self.read_local(src)

        await self.session.write_file(dest, contents)

        return ModuleResult(
            changed=True,
            msg=f"Copied {src} to {dest}" + (" (remote)" if self.kind.remote_src else ""),
        )

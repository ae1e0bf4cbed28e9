"""
Pushbook template module

Template a file to a remote host using Jinja2.
"""

from pushbook.engine.playbook import TemplateTask
from pushbook.modules.base import Module, ModuleResult, register_module


@register_module
class TemplateModule(Module[TemplateTask]):
    """
    Render a local Jinja2 template and write the result to the remote host.

    The task's variables are layered over a copy of the host context for
    this render only; the host context itself is not modified.
    """

    name = "template"

    async def run(self) -> ModuleResult:
        src = self.kind.src
        dest = self.kind.dest

        template_content = self.decode(self.read_local(src), src)
        variables = self.context.overlay(self.kind.variables)

        rendered = self.templates.render(
            template_content,
            variables.get_vars(),
            host=self.host.address,
        )

        await self.session.write_file(dest, rendered.encode('utf-8'))

        return ModuleResult(
            changed=True,
            msg=f"Rendered {src} to {dest}",
        )

"""
Instruction (aggregate usage) rendering.

Instructer is a mixin for the dispatcher: it relies on the host object exposing
`name` and a `groups` iterable of Group objects, and renders

    <name> [OPTIONS...] {COMMAND} ...

followed by every group (a priority-sorted copy of `groups`) and, within each
group, every command (sorted by the group's ordering). A subset of commands can be
queued with narrow(); the next instruction() renders only that subset and forgets it.
"""
from .utils import Unset, console, palette, styled


class Instructer:
    __title__ = "%s [OPTIONS...] {COMMAND} ..."

    def __init__(self, output=Unset, /, *, colorful=True):
        self._output = output
        self._colorful = colorful
        self._subset = []

    @property
    def out(self):
        return console(self._output).file

    def set_out(self, output, /):
        self._output = output

    def narrow(self, *commands):
        """
        restrict the next instruction() to the given commands.
        """
        self._subset.extend(commands)

    def _title(self, render):
        styles = palette({"title": "bold #FFFFFF"})
        render.print(styled(type(self).__title__ % self.name, styles["title"], colorful=self._colorful))
        render.print()

    def instruction(self, ctx, /):
        render = console(self._output)
        self._title(render)
        if self._subset:
            subset, self._subset = self._subset, []
            for command in subset:
                command.use(render.file)
            return
        for group in sorted(self.groups, key=lambda group: group.priority):
            group.use(render.file)

    def subset_instruction(self, *commands):
        """
        return a cleanup rendering only the given commands.
        """
        def instruction(ctx, /):
            render = console(self._output)
            for command in commands:
                command.use(render.file)

        return instruction


__all__ = (
    "Instructer",
)

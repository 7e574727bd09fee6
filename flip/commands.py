"""
Flip command layer: commands, their groups, and the statuses they report.

What this module provides
- ExitStatus: what a command's callback reports back to the dispatcher, doubling as
  the key of cleanup buckets.
  • NO: keep processing queued commands (never a cleanup bucket).
  • SUCCESS / FAILURE: stop dispatching, run that bucket.
  • USAGE_ERROR: stop dispatching, render instructions.
  • ANY: cleanup bucket that runs after every other bucket (never returned).
- Outcome: the integer a dispatch finally reports (0, -1, -2).
- Command: a tag, a group, a priority, an "escapes" marker, a description, a callback
  of shape (ctx, arguments) -> (ctx, ExitStatus), and an owned FlagSet.
- command(tag, ...): decorator turning a plain function into a Command.
- Group: named, prioritised, sortable list of commands.
- Groups: the ordered collection of groups a commander owns.

Quick start
    from flip import FlagSet, ExitStatus, command

    flags = FlagSet("build")
    jobs = flags.int("jobs", 1, "parallel jobs")

    @command("build", priority=10, flagset=flags)
    def build(ctx, arguments):
        '''Build the project.'''
        return ctx, ExitStatus.SUCCESS
"""
import inspect
from enum import IntEnum

from rich.text import Text

from .flags import FlagSet
from .utils import Unset, console, mirror, palette, rename, styled


class ExitStatus(IntEnum):
    NO = 0           # continue processing commands
    SUCCESS = 1      # outcome 0
    FAILURE = 2      # outcome -1
    USAGE_ERROR = 3  # outcome -2
    ANY = 4          # cleanup bucket run after every other bucket, never returned


class Outcome(IntEnum):
    SUCCESS = 0
    FAILURE = -1
    USAGE_ERROR = -2


class Command:
    """
    A named entry point with its own flags.

    Parameters
    - tag: str, the token that selects this command on the command line.
    - callback: Callable[[ctx, list[str]], tuple[ctx, ExitStatus]] | None
      Without a callback, execute() reports FAILURE.
    - group: str, name of the group the command is rendered and registered under.
    - descr: str, free text shown under the command header.
    - priority: int, lower runs (and renders) first.
    - escapes: bool, when True nothing after this command's tag is scanned for other commands.
    - flagset: FlagSet, defaults to an empty continue-on-error set named after the tag.
    """
    tag = mirror("tag")
    callback = mirror("callback")
    descr = mirror("descr")
    priority = mirror("priority")
    escapes = mirror("escapes")
    flagset = mirror("flagset")

    def __init__(
            self,
            tag,
            callback=None,
            /,
            group="",
            descr="",
            priority=0,
            escapes=False,
            flagset=Unset,
            *,
            colorful=True,
    ):
        if not isinstance(tag, str) or not tag.strip():
            raise ValueError("Command() tag must be a non-empty string")
        if callback is not None and not callable(callback):
            raise TypeError("Command() callback must be callable")
        if not isinstance(priority, int):
            raise TypeError("Command() priority must be an integer")
        if flagset is Unset:
            flagset = FlagSet(tag)
        if not isinstance(flagset, FlagSet):
            raise TypeError("Command() flagset must be a flag set")
        self._tag = tag
        self._callback = callback
        self._group = group
        self._descr = descr
        self._priority = priority
        self._escapes = bool(escapes)
        self._flagset = flagset
        self._colorful = colorful

    @property
    def group(self):
        return self._group

    def set_group(self, name, /):
        self._group = name

    def execute(self, ctx, arguments, /):
        if self._callback is not None:
            return self._callback(ctx, arguments)
        return ctx, ExitStatus.FAILURE

    def use(self, output=Unset, /):
        """
        render the command header, its description, then its flags.
        """
        styles = palette({
            "command-rule": "#4B5563",
            "command-tag": "bold #36C5F0",
            "command-flags": "#9CA3AF",
            "command-descr": "italic #E5E7EB",
        })

        def text(fragment, style):
            return styled(fragment, styles[style], colorful=self._colorful)

        render = console(output)
        render.print(text("-----", "command-rule"))
        render.print(Text.assemble(text(self._tag, "command-tag"), " ", text("[<flags>]", "command-flags"), ":"))
        render.print(Text(" " * 8).append(text(self._descr, "command-descr")))
        render.print()
        self._flagset.usage(render.file)
        render.print()

    def __repr__(self):
        return "command(tag=%r, group=%r, priority=%r, escapes=%r)" % (
            self._tag, self._group, self._priority, self._escapes
        )


def command(tag, /, *args, **kwargs):
    """
    Return a decorator wrapping a function into a Command.

    The function's docstring becomes the description unless descr is given.

        @command("clean", priority=1, escapes=True)
        def clean(ctx, arguments):
            '''Remove build artifacts.'''
            return ctx, ExitStatus.NO
    """
    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        if len(args) < 2 and "descr" not in kwargs:
            kwargs["descr"] = inspect.getdoc(callback) or ""
        return Command(tag, callback, *args, **kwargs)

    return wrapper


class Group:
    """
    A named, prioritised list of commands.

    sort_by("default") orders commands by priority, sort_by("alpha") by tag; both are
    stable. use() renders with the current ordering.
    """
    __orderings__ = {
        "default": lambda command: command.priority,
        "alpha": lambda command: command.tag,
    }

    name = mirror("name")
    priority = mirror("priority")
    ordering = mirror("ordering")
    commands = mirror("commands")

    def __init__(self, name, priority=0, /, *commands):
        self._name = name
        self._priority = priority
        self._ordering = "default"
        self._commands = list(commands)

    def set_priority(self, priority, /):
        self._priority = priority

    def add(self, *commands):
        self._commands.extend(commands)

    def sort_by(self, ordering, /):
        try:
            key = type(self).__orderings__[ordering]
        except KeyError:
            raise ValueError("sort_by() ordering must be one of %s" % ", ".join(map(repr, type(self).__orderings__))) from None
        self._ordering = ordering
        self._commands.sort(key=key)

    def use(self, output=Unset, /):
        """
        render every command in the current ordering (priority unless sort_by("alpha") was chosen).
        """
        self.sort_by(self._ordering)
        for command in self._commands:
            command.use(output)

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return "group(name=%r, priority=%r, commands=%r)" % (
            self._name, self._priority, [command.tag for command in self._commands]
        )


class Groups:
    """
    The ordered groups of a commander; sort() orders them by priority (stable).
    """

    def __init__(self):
        self._has = []

    def __iter__(self):
        return iter(self._has)

    def __len__(self):
        return len(self._has)

    def append(self, group, /):
        self._has.append(group)

    def get(self, name, /):
        for group in self._has:
            if group.name == name:
                return group
        return None

    def sort(self):
        self._has.sort(key=lambda group: group.priority)


__all__ = (
    "ExitStatus",
    "Outcome",
    "Command",
    "command",
    "Group",
    "Groups",
)

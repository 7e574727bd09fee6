"""
Flip dispatcher: turn one argument vector into an ordered run of commands.

What this module provides
- Operation: a recognised command occurrence and its bounded argument slice.
- queue(commander, arguments): the segmentation algorithm.
- Commander: the registry of groups and commands (lookup by tag).
- Flip: Commander + Instructer + Cleaner, with execute() as the entry point and exit()
  as the only place that terminates the process.

Segmentation (queue)
1. scan tokens left to right; every token equal to a registered tag opens an operation.
   An escaping command stops the scan: the rest of the vector belongs to it.
2. each operation ends where the next one starts; the last one ends the vector.
3. the slice arguments[start:stop] keeps the tag at index 0.
4. operations are sorted (stably) by command priority, not by position.

Execution (Flip.execute)
- each operation parses its flags from slice[1:] and runs the callback with slice[1:].
- SUCCESS / FAILURE: run that cleanup bucket and stop with 0 / -1.
- USAGE_ERROR (a callback's, or a flag parse fault): stop and take the instruction path.
- NO: go on with the next operation.
- instruction path (also reached on an empty vector, no recognised command, or an
  exhausted queue): run the USAGE_ERROR bucket, whose default cleanup renders the
  instructions, and report -2.
A cleanup returning an Outcome overrides the reported result.

Quick start
    from flip import Flip, FlagSet, ExitStatus, command

    app = Flip("tool")
    flags = FlagSet("greet")
    name = flags.string("name", "world", "who to greet")

    @command("greet", flagset=flags)
    def greet(ctx, arguments):
        '''Print a greeting.'''
        print("hello", name.value.get())
        return ctx, ExitStatus.SUCCESS

    app.set_group("main", 1, greet)

    if __name__ == "__main__":
        app.exit()
"""
import logging
import sys

from rich.text import Text

from .cleaner import Cleaner
from .commands import Command, ExitStatus, Group, Groups, Outcome, command
from .faults import DuplicateCommandError, UnknownGroupError, FaultCode, trigger
from .instructer import Instructer
from .utils import Unset, coalesce, console, mirror

logger = logging.getLogger(__name__)


class Operation:
    __slots__ = ("start", "stop", "command", "arguments")

    def __init__(self, start, command, /):
        self.start = start
        self.stop = start
        self.command = command
        self.arguments = []

    def __repr__(self):
        return "operation(command=%r, start=%d, stop=%d)" % (self.command.tag, self.start, self.stop)


def queue(commander, arguments, /):
    """
    segment arguments into operations ordered by command priority.
    """
    operations = []
    for index, token in enumerate(arguments):
        if (command := commander.get_command(token)) is not None:
            operations.append(Operation(index, command))
            if command.escapes:
                break

    for current, following in zip(operations, operations[1:]):
        current.stop = following.start
    if operations:
        operations[-1].stop = len(arguments)

    for operation in operations:
        operation.arguments = arguments[operation.start:operation.stop]

    operations.sort(key=lambda operation: operation.command.priority)
    return operations


class Commander:
    """
    Registry of prioritised groups and the commands they hold.

    Tags are unique across the whole registry; registering a tag twice, or into a
    group that does not exist, is a configuration fault.
    """

    def __init__(self):
        self._groups = Groups()
        self._commands = {}

    @property
    def groups(self):
        return tuple(self._groups)

    @property
    def commands(self):
        return tuple(self._commands.values())

    def get_group(self, name, /):
        return self._groups.get(name)

    def set_group(self, name, priority, /, *commands):
        """
        create the named group (or reprioritise an existing one) and register commands into it.
        """
        if (group := self._groups.get(name)) is None:
            self._groups.append(Group(name, priority))
        else:
            group.set_priority(priority)
        for command in commands:
            command.set_group(name)
        return self.set_command(*commands)

    def get_command(self, tag, /):
        return self._commands.get(tag)

    def set_command(self, *commands):
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError("set_command() arguments must be commands")
            if command.tag in self._commands:
                trigger(DuplicateCommandError(
                    "command redefined: %s" % command.tag,
                    title="duplicate command",
                    code=FaultCode.DUPLICATE_COMMAND,
                    input=command.tag,
                    hint="each command tag can be registered once",
                ))
            if (group := self._groups.get(command.group)) is None:
                trigger(UnknownGroupError(
                    "no group %r for command %s" % (command.group, command.tag),
                    title="unknown group",
                    code=FaultCode.UNKNOWN_GROUP,
                    input=command.group,
                    hint="declare the group with set_group() first",
                ))
            group.add(command)
            self._commands[command.tag] = command
        return self


def _help(flip):
    @command("help", "", "Provides help for all or specific commands.", 0, True)
    def help(ctx, arguments, /):
        if found := [command for command in map(flip.get_command, arguments) if command is not None]:
            flip.narrow(*found)
        return ctx, ExitStatus.USAGE_ERROR

    return help


def _version(flip, *lines):
    @command("version", "", "Prints the version of %s." % flip.name, 0, True)
    def version(ctx, arguments, /):
        console(flip.out).print(Text(" ".join((flip.name, *lines))))
        return ctx, ExitStatus.SUCCESS

    return version


class Flip(Commander, Instructer, Cleaner):
    """
    A multi-command program: registry, instructions, cleanups and the dispatcher.

    Parameters
    - name: str, the program name used in instructions.
    - output: stream for instructions and the version command (sys.stdout when Unset).
    - colorful: bool, styles instructions when the output is a terminal.

    A fresh Flip has an empty default group "" at priority 0 and renders the full
    instructions as its USAGE_ERROR cleanup.
    """
    name = mirror("name")

    def __init__(self, name, output=Unset, /, *, colorful=True):
        self._name = name
        Commander.__init__(self)
        Instructer.__init__(self, output, colorful=colorful)
        Cleaner.__init__(self)
        self.set_cleanup(ExitStatus.USAGE_ERROR, self.instruction)
        self.set_group("", 0)

    def add_command(self, name, /, *arguments):
        """
        register a convenience command: "help" or "version" (arguments are the version text).
        """
        match name:
            case "help":
                return self.set_command(_help(self))
            case "version":
                return self.set_command(_version(self, *arguments))
        raise ValueError("add_command() unknown convenience command %r" % name)

    def _run(self, ctx, operation, /):
        arguments = operation.arguments[1:]
        if operation.command.flagset.parse(arguments) is not None:
            return ctx, ExitStatus.USAGE_ERROR
        return operation.command.execute(ctx, arguments)

    def _conclude(self, status, ctx, outcome, /):
        override = self.run_cleanup(status, ctx)
        return override if override is not None else outcome

    def execute(self, ctx, arguments, /):
        """
        dispatch arguments and report Outcome.SUCCESS (0), FAILURE (-1) or USAGE_ERROR (-2).
        """
        arguments = list(arguments)
        operations = queue(self, arguments) if arguments else []
        logger.debug("queued %r", operations)
        for operation in operations:
            ctx, status = self._run(ctx, operation)
            logger.debug("command %s reported %r", operation.command.tag, status)
            match status:
                case ExitStatus.SUCCESS:
                    return self._conclude(status, ctx, Outcome.SUCCESS)
                case ExitStatus.FAILURE:
                    return self._conclude(status, ctx, Outcome.FAILURE)
                case ExitStatus.USAGE_ERROR:
                    break
                case _:
                    continue
        return self._conclude(ExitStatus.USAGE_ERROR, ctx, Outcome.USAGE_ERROR)

    def exit(self, ctx=None, arguments=Unset, /):
        """
        execute sys.argv[1:] (or the given arguments) and exit the process with the outcome.
        """
        sys.exit(self.execute(ctx, coalesce(arguments, sys.argv[1:])))

    def __repr__(self):
        return "flip(name=%r, groups=%r)" % (self._name, list(self._groups))


__all__ = (
    "Operation",
    "queue",
    "Commander",
    "Flip",
)

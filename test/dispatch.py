"""
Dispatcher behavioral tests (segmentation, ordering, statuses, cleanups, instructions).

Scope
- queue(): slices, escapes, stable priority ordering.
- Flip.execute(): halting statuses, usage-error path, context threading, overrides.
- Registry faults, help/version commands, the exit driver.

Conventions
- Test method names follow CamelCase per project convention.
- Every Flip writes to an in-memory stream.
"""

from __future__ import annotations

import io
import unittest
from datetime import timedelta
from unittest import TestCase

from flip import (
    Flip,
    FlagSet,
    Command,
    ExitStatus,
    Outcome,
    command,
    queue,
)
from flip.faults import DuplicateCommandError, UnknownGroupError


class Recorder:
    """Collects which callbacks ran, with what context and arguments."""

    def __init__(self):
        self.calls = []

    def command(self, tag, status, /, priority=0, **options):
        def callback(ctx, arguments):
            self.calls.append((tag, ctx, arguments))
            return ctx, status

        return Command(tag, callback, priority=priority, **options)

    def cleanup(self, name):
        def callback(ctx):
            self.calls.append((name, ctx))

        return callback

    @property
    def tags(self):
        return [call[0] for call in self.calls]


class DispatchCase(TestCase):

    def setUp(self):
        self.output = io.StringIO()
        self.recorder = Recorder()
        self.flip = Flip("tool", self.output)
        for status in (ExitStatus.SUCCESS, ExitStatus.FAILURE, ExitStatus.USAGE_ERROR, ExitStatus.ANY):
            self.flip.set_cleanup(status, self.recorder.cleanup(status.name))


class TestQueue(DispatchCase):

    def testSlicesAndPriority(self):
        flags = FlagSet("cmdA")
        flags.string("flag", "", "a string flag")
        self.flip.set_group(
            "main", 1,
            Command("cmdA", None, priority=10, flagset=flags),
            Command("cmdB", None, priority=1),
        )
        operations = queue(self.flip, ["x", "cmdA", "--flag", "v", "cmdB"])
        self.assertEqual([operation.command.tag for operation in operations], ["cmdB", "cmdA"])
        self.assertEqual([operation.arguments for operation in operations], [["cmdB"], ["cmdA", "--flag", "v"]])
        self.assertEqual([(operation.start, operation.stop) for operation in operations], [(4, 5), (1, 4)])

    def testEqualPrioritiesKeepPositions(self):
        self.flip.set_group("main", 1, Command("one"), Command("two"))
        operations = queue(self.flip, ["two", "one", "two"])
        self.assertEqual([operation.arguments for operation in operations], [["two"], ["one"], ["two"]])

    def testEscapeStopsScanning(self):
        self.flip.set_group("main", 1, Command("run", escapes=True), Command("other"))
        operations = queue(self.flip, ["run", "other", "-x"])
        self.assertEqual(len(operations), 1)
        self.assertEqual(operations[0].arguments, ["run", "other", "-x"])

    def testNoCommand(self):
        self.assertEqual(queue(self.flip, ["nothing", "here"]), [])


class TestExecute(DispatchCase):

    def testPriorityOrderAndFlags(self):
        flags = FlagSet("cmdA")
        flag = flags.string("flag", "", "a string flag")
        self.flip.set_group(
            "main", 1,
            self.recorder.command("cmdA", ExitStatus.NO, 10, flagset=flags),
            self.recorder.command("cmdB", ExitStatus.NO, 1),
        )
        outcome = self.flip.execute(None, ["x", "cmdA", "--flag", "v", "cmdB"])
        self.assertEqual(outcome, Outcome.USAGE_ERROR)
        self.assertEqual(self.recorder.tags, ["cmdB", "cmdA", "USAGE_ERROR", "ANY"])
        self.assertEqual(self.recorder.calls[1], ("cmdA", None, ["--flag", "v"]))
        self.assertEqual(flag.value.get(), "v")

    def testSuccessHalts(self):
        self.flip.set_group(
            "main", 1,
            self.recorder.command("cmdA", ExitStatus.SUCCESS, 10),
            self.recorder.command("cmdB", ExitStatus.SUCCESS, 1),
        )
        self.assertEqual(self.flip.execute(None, ["cmdA", "cmdB"]), Outcome.SUCCESS)
        self.assertEqual(self.recorder.tags, ["cmdB", "SUCCESS", "ANY"])
        self.assertEqual(self.output.getvalue(), "")

    def testFailure(self):
        self.flip.set_group("main", 1, self.recorder.command("cmdA", ExitStatus.FAILURE))
        self.assertEqual(self.flip.execute(None, ["cmdA"]), Outcome.FAILURE)
        self.assertEqual(self.recorder.tags, ["cmdA", "FAILURE", "ANY"])

    def testCommandWithoutCallbackFails(self):
        self.flip.set_group("main", 1, Command("bare"))
        self.assertEqual(self.flip.execute(None, ["bare"]), Outcome.FAILURE)

    def testUsageErrorStopsQueue(self):
        self.flip.set_group(
            "main", 1,
            self.recorder.command("cmdA", ExitStatus.USAGE_ERROR, 1),
            self.recorder.command("cmdB", ExitStatus.SUCCESS, 2),
        )
        self.assertEqual(self.flip.execute(None, ["cmdB", "cmdA"]), Outcome.USAGE_ERROR)
        self.assertEqual(self.recorder.tags, ["cmdA", "USAGE_ERROR", "ANY"])
        self.assertIn("tool [OPTIONS...] {COMMAND} ...", self.output.getvalue())

    def testEmptyArguments(self):
        self.assertEqual(self.flip.execute(None, []), Outcome.USAGE_ERROR)
        self.assertEqual(self.recorder.tags, ["USAGE_ERROR", "ANY"])
        self.assertIn("tool [OPTIONS...] {COMMAND} ...", self.output.getvalue())

    def testUnrecognisedArguments(self):
        self.flip.set_group("main", 1, self.recorder.command("cmdA", ExitStatus.SUCCESS))
        self.assertEqual(self.flip.execute(None, ["cmdX", "-v"]), Outcome.USAGE_ERROR)
        self.assertEqual(self.recorder.tags, ["USAGE_ERROR", "ANY"])

    def testFlagFaultTakesUsagePath(self):
        flags = FlagSet("cmdA")
        flags.set_out(io.StringIO())
        flags.int("n", 0, "a number")
        self.flip.set_group("main", 1, self.recorder.command("cmdA", ExitStatus.SUCCESS, flagset=flags))
        self.assertEqual(self.flip.execute(None, ["cmdA", "-n", "many"]), Outcome.USAGE_ERROR)
        self.assertEqual(self.recorder.tags, ["USAGE_ERROR", "ANY"])

    def testEscapingCommandOwnsTheRest(self):
        self.flip.set_group(
            "main", 1,
            self.recorder.command("run", ExitStatus.SUCCESS, 5, escapes=True),
            self.recorder.command("cmdB", ExitStatus.SUCCESS, 1),
        )
        self.assertEqual(self.flip.execute(None, ["run", "cmdB", "x"]), Outcome.SUCCESS)
        self.assertEqual(self.recorder.calls[0], ("run", None, ["cmdB", "x"]))

    def testContextIsThreaded(self):
        def first(ctx, arguments):
            return {**ctx, "first": True}, ExitStatus.NO

        def second(ctx, arguments):
            return {**ctx, "second": ctx["first"]}, ExitStatus.SUCCESS

        self.flip.set_group("main", 1, Command("a", first, priority=1), Command("b", second, priority=2))
        self.assertEqual(self.flip.execute({}, ["b", "a"]), Outcome.SUCCESS)
        self.assertEqual(self.recorder.calls[-1], ("ANY", {"first": True, "second": True}))

    def testOutOfRangeDurationTakesUsagePath(self):
        flags = FlagSet("run")
        flags.duration("d", timedelta(0), "a duration")
        self.flip.set_group("main", 1, self.recorder.command("run", ExitStatus.SUCCESS, flagset=flags))
        self.assertEqual(self.flip.execute(None, ["run", "-d", "99999999999999h"]), Outcome.USAGE_ERROR)
        self.assertEqual(self.recorder.tags, ["USAGE_ERROR", "ANY"])

    def testCleanupOverride(self):
        self.flip.set_group("main", 1, self.recorder.command("cmdA", ExitStatus.SUCCESS))
        self.flip.set_cleanup(ExitStatus.SUCCESS, lambda ctx: Outcome.FAILURE)
        self.assertEqual(self.flip.execute(None, ["cmdA"]), Outcome.FAILURE)


class TestRegistry(DispatchCase):

    def testDuplicateCommand(self):
        self.flip.set_group("main", 1, Command("cmdA"))
        with self.assertRaises(DuplicateCommandError):
            self.flip.set_group("other", 2, Command("cmdA"))

    def testUnknownGroup(self):
        with self.assertRaises(UnknownGroupError):
            self.flip.set_command(Command("cmdA", group="missing"))

    def testSetCommandIntoDefaultGroup(self):
        self.flip.set_command(Command("cmdA"))
        self.assertEqual(self.flip.get_group("").commands[0].tag, "cmdA")
        self.assertIsNone(self.flip.get_command("cmdB"))

    def testSetGroupReprioritises(self):
        self.flip.set_group("main", 1, Command("cmdA"))
        self.flip.set_group("main", 7, Command("cmdB"))
        group = self.flip.get_group("main")
        self.assertEqual(group.priority, 7)
        self.assertEqual([command.tag for command in group.commands], ["cmdA", "cmdB"])
        self.assertEqual(self.flip.get_command("cmdB").group, "main")

    def testSetCommandRejectsOtherObjects(self):
        with self.assertRaises(TypeError):
            self.flip.set_command("cmdA")


class TestInstructions(DispatchCase):

    def testGroupsRenderByPriority(self):
        self.flip.set_group("late", 2, Command("cmdLate", descr="rendered second"))
        self.flip.set_group("early", 1, Command("cmdEarly", descr="rendered first"))
        self.flip.execute(None, [])
        printed = self.output.getvalue()
        self.assertTrue(printed.startswith("tool [OPTIONS...] {COMMAND} ...\n\n"))
        self.assertLess(printed.index("cmdEarly [<flags>]:"), printed.index("cmdLate [<flags>]:"))
        self.assertIn("        rendered first", printed)
        self.assertEqual([group.name for group in self.flip.groups], ["", "late", "early"])

    def testSubsetInstruction(self):
        cmdA, cmdB = Command("cmdA"), Command("cmdB")
        self.flip.set_group("main", 1, cmdA, cmdB)
        self.flip.subset_instruction(cmdB)(None)
        printed = self.output.getvalue()
        self.assertIn("cmdB [<flags>]:", printed)
        self.assertNotIn("cmdA [<flags>]:", printed)

    def testOutputCanBeReplaced(self):
        replacement = io.StringIO()
        self.flip.set_out(replacement)
        self.assertIs(self.flip.out, replacement)
        self.flip.execute(None, [])
        self.assertIn("tool [OPTIONS...]", replacement.getvalue())
        self.assertEqual(self.output.getvalue(), "")


class TestConvenienceCommands(DispatchCase):

    def setUp(self):
        super().setUp()
        self.flip.set_group("main", 1, Command("cmdA"), Command("cmdB"))

    def testHelpForEverything(self):
        self.flip.add_command("help")
        self.assertEqual(self.flip.execute(None, ["help"]), Outcome.USAGE_ERROR)
        printed = self.output.getvalue()
        self.assertIn("cmdA [<flags>]:", printed)
        self.assertIn("cmdB [<flags>]:", printed)
        self.assertIn("Provides help for all or specific commands.", printed)

    def testHelpForOneCommand(self):
        self.flip.add_command("help")
        self.assertEqual(self.flip.execute(None, ["help", "cmdA", "unknown"]), Outcome.USAGE_ERROR)
        printed = self.output.getvalue()
        self.assertIn("cmdA [<flags>]:", printed)
        self.assertNotIn("cmdB [<flags>]:", printed)
        self.assertEqual(self.recorder.tags, ["USAGE_ERROR", "ANY"])

        # the subset is used once
        self.output.truncate(0)
        self.output.seek(0)
        self.flip.execute(None, [])
        self.assertIn("cmdB [<flags>]:", self.output.getvalue())

    def testVersion(self):
        self.flip.add_command("version", "1.0.0", "(build 7)")
        self.assertEqual(self.flip.execute(None, ["version"]), Outcome.SUCCESS)
        self.assertEqual(self.output.getvalue(), "tool 1.0.0 (build 7)\n")

    def testUnknownConvenienceCommand(self):
        with self.assertRaises(ValueError):
            self.flip.add_command("status")


class TestExit(DispatchCase):

    def testExitUsesOutcome(self):
        @command("cmdC")
        def cmdC(ctx, arguments):
            """Always fails."""
            return ctx, ExitStatus.FAILURE

        self.flip.set_group("main", 1, cmdC)
        with self.assertRaises(SystemExit) as caught:
            self.flip.exit(None, ["cmdC"])
        self.assertEqual(caught.exception.code, Outcome.FAILURE)

    def testExitWithEmptyArguments(self):
        with self.assertRaises(SystemExit) as caught:
            self.flip.exit(None, [])
        self.assertEqual(caught.exception.code, -2)


if __name__ == "__main__":
    unittest.main()

"""
Flip flag layer: named, described registrations of typed values and the flag sets
that parse them.

What this module provides
- Flag: a name, a usage text, a default and the Value behind it.
- FlagSet: an ordered, name-unique collection of flags for one command that owns
  parsing, usage rendering, and set/visit introspection.

Registration
- Typed constructors: bool, int (int32), int64, uint (uint32), uint64, string,
  float64, duration. Each takes (name, default, usage) and returns the Flag.
- Contained constructors: <kind>_contain(container, name, key, usage). The initial
  value is read from container.get(key) (a missing entry becomes the kind's zero
  and is written back); parsed values are written through container.set(key, value).
- regex(name, usage, validator, *patterns) / regex_contain(container, name, key,
  usage, validator, *patterns): string flags validated against compiled patterns.
- Registering an existing name is a configuration fault in every error mode.

Parsing (left to right)
- '-name', '--name': boolean flags become true; other kinds take the next token.
- '-name=value', '--name=value': inline values (boolean flags accept boolean literals only).
- '--' ends flag parsing; so does the first token that is not a flag.
  Everything after that point is positional (args, arg(i), narg()).
- three or more dashes, '-=x', unknown names, missing values and malformed literals
  are parse faults, surfaced through the set's ErrorHandling policy.
- '-h' / '-help' print usage and report HelpRequested unless such flags are registered.

Usage text
- One entry per flag in registration order: '-name label' followed by the usage text
  and, when the default is not the zero value, '(default ...)'.
- A back-quoted word in the usage text replaces the kind's label (see unquote_usage).
"""
import sys

from rich.text import Text

from .faults import *
from .values import Kind, Owned, Contained, Value, RegexValue, PatternMismatch
from .utils import Unset, coalesce, console, palette, styled, unquote_usage


class Flag:
    """
    A registered flag. The kind is fixed by the constructor used to register it.
    """
    __slots__ = ("_name", "_usage", "_value", "_default")

    def __init__(self, name, usage, value, default, /):
        self._name = name
        self._usage = usage
        self._value = value
        self._default = default

    @property
    def name(self):
        return self._name

    @property
    def usage(self):
        return self._usage

    @property
    def value(self):
        return self._value

    @property
    def default(self):
        return self._default

    @property
    def label(self):
        """
        placeholder shown after the name in usage: the back-quoted word, else the kind's label.
        """
        return unquote_usage(self._usage)[0] or self._value.kind.label

    @property
    def text(self):
        return unquote_usage(self._usage)[1]

    def __repr__(self):
        return f"flag(name={self._name!r}, value={self._value!r}, default={self._default!r})"


class FlagSet:
    """
    An ordered, name-unique collection of flags belonging to one command.

    Parameters
    - name: str, shown in fault headers.
    - errors: ErrorHandling (default CONTINUE)
      • CONTINUE: parse/set faults are returned; configuration faults are raised.
      • EXIT: faults and usage are printed to the output and SystemExit is raised.
      • ABORT: faults are raised.
    - colorful: bool, styles usage and faults when the output is a terminal.
    """

    def __init__(self, name, errors=ErrorHandling.CONTINUE, /, *, colorful=True):
        if not isinstance(name, str):
            raise TypeError("FlagSet() name must be a string")
        if not isinstance(errors, ErrorHandling):
            raise TypeError("FlagSet() errors must be an error-handling mode")
        self._name = name
        self._errors = errors
        self._colorful = colorful
        self._formal = {}
        self._actual = {}
        self._args = []
        self._parsed = False
        self._output = Unset

    @property
    def name(self):
        return self._name

    @property
    def errors(self):
        return self._errors

    @property
    def parsed(self):
        return self._parsed

    @property
    def flags(self):
        return tuple(self._formal.values())

    @property
    def args(self):
        return list(self._args)

    @property
    def out(self):
        return coalesce(self._output, sys.stderr)

    def set_out(self, output, /):
        self._output = output

    def trigger(self, fault, /):
        """
        surface a fault under this set's error-handling mode.
        """
        return trigger(
            fault,
            errors=self._errors,
            output=self.out,
            usage=None if isinstance(fault, HelpRequested) else self.usage,
            prog=self._name,
            colorful=self._colorful,
        )

    def var(self, value, name, usage, /, default=Unset):
        """
        register an arbitrary Value under name; default falls back to the value's current content.
        """
        if not isinstance(name, str) or not name:
            raise TypeError("flag name must be a non-empty string")
        if name in self._formal:
            return self.trigger(DuplicateFlagError(
                "flag redefined: %s" % name,
                title="duplicate flag",
                code=FaultCode.DUPLICATE_FLAG,
                flag=name,
                hint="each flag name can be registered once per flag set",
            ))
        self._formal[name] = flag = Flag(name, usage, value, coalesce(default, value.get()))
        return flag

    def _owned(self, kind, name, default, usage):
        return self.var(Value(kind, Owned(default)), name, usage)

    def _contained(self, value, name, usage):
        initial = value.storage.get()
        flag = self.var(value, name, usage, value.kind.zero if initial is None else initial)
        if initial is None:
            value.storage.set(value.kind.zero)
        return flag

    def bool(self, name, default, usage, /):
        return self._owned(Kind.BOOL, name, default, usage)

    def int(self, name, default, usage, /):
        return self._owned(Kind.INT32, name, default, usage)

    def int64(self, name, default, usage, /):
        return self._owned(Kind.INT64, name, default, usage)

    def uint(self, name, default, usage, /):
        return self._owned(Kind.UINT32, name, default, usage)

    def uint64(self, name, default, usage, /):
        return self._owned(Kind.UINT64, name, default, usage)

    def string(self, name, default, usage, /):
        return self._owned(Kind.STRING, name, default, usage)

    def float64(self, name, default, usage, /):
        return self._owned(Kind.FLOAT64, name, default, usage)

    def duration(self, name, default, usage, /):
        return self._owned(Kind.DURATION, name, default, usage)

    def bool_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.BOOL, Contained(container, key)), name, usage)

    def int_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.INT32, Contained(container, key)), name, usage)

    def int64_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.INT64, Contained(container, key)), name, usage)

    def uint_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.UINT32, Contained(container, key)), name, usage)

    def uint64_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.UINT64, Contained(container, key)), name, usage)

    def string_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.STRING, Contained(container, key)), name, usage)

    def float64_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.FLOAT64, Contained(container, key)), name, usage)

    def duration_contain(self, container, name, key, usage, /):
        return self._contained(Value(Kind.DURATION, Contained(container, key)), name, usage)

    def regex(self, name, usage, validator=None, /, *patterns):
        """
        register a string flag whose input must pass validator(text, *compiled_patterns).

        validator=None checks that every pattern matches somewhere in the input.
        """
        return self.var(RegexValue(Owned(""), validator, *patterns), name, usage)

    def regex_contain(self, container, name, key, usage, validator=None, /, *patterns):
        return self._contained(RegexValue(Contained(container, key), validator, *patterns), name, usage)

    def lookup(self, name, /):
        return self._formal.get(name)

    def _assign(self, flag, text, /):
        """
        parse text into the flag's value and mark it as set; raises an untriggered fault.
        """
        try:
            flag.value.set(text)
        except PatternMismatch as error:
            raise ValidationError(
                "invalid value %r for flag -%s: regex flag %s" % (text, flag.name, error),
                title="failed validation",
                code=FaultCode.FAILED_VALIDATION,
                flag=flag.name,
                input=text,
                hint="the value must satisfy the pattern(s) described by -%s" % flag.name,
            ) from None
        except ValueError as error:
            if flag.value.is_bool:
                message = "invalid boolean value %r for -%s: %s" % (text, flag.name, error)
            else:
                message = "invalid value %r for flag -%s: %s" % (text, flag.name, error)
            raise InvalidValueError(
                message,
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                flag=flag.name,
                input=text,
                hint="expected a %s literal" % flag.value.kind.identifier,
            ) from None
        self._actual[flag.name] = flag

    def set(self, name, text, /):
        """
        assign a registered flag outside of parse and mark it as set.

        returns None on success, or the fault when the set continues on error.
        """
        if (flag := self._formal.get(name)) is None:
            return self.trigger(UnknownFlagError(
                "no such flag -%s" % name,
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                input=name,
            ))
        try:
            self._assign(flag, text)
        except ParseError as fault:
            return self.trigger(fault)
        return None

    def _parse_one(self):
        """
        consume one flag (and possibly its value) from the head of the pending arguments.

        returns False when flag parsing stops; raises an untriggered ParseError on faults.
        """
        if not self._args:
            return False
        token = self._args[0]
        if len(token) < 2 or token[0] != "-":
            return False
        dashes = 2 if token[1] == "-" else 1
        if dashes == 2 and len(token) == 2:
            del self._args[0]
            return False
        name = token[dashes:]
        if not name or name[0] in "-=":
            raise MalformedFlagError(
                "bad flag syntax: %s" % token,
                title="malformed flag",
                code=FaultCode.MALFORMED_FLAG,
                input=token,
                hint="flags take one or two leading dashes (for example: -name or --name=value)",
            )
        del self._args[0]

        name, separator, value = name.partition("=")
        if (flag := self._formal.get(name)) is None:
            if name in ("help", "h"):
                self.usage()
                raise HelpRequested(
                    "help requested",
                    title="help requested",
                    code=FaultCode.HELP_REQUESTED,
                    input=token,
                )
            raise UnknownFlagError(
                "flag provided but not defined: -%s" % name,
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                input=name,
                hint="see the flag list printed by -help",
            )

        if flag.value.is_bool:
            self._assign(flag, value if separator else "true")
            return True

        if not separator:
            if not self._args:
                raise MissingValueError(
                    "flag needs an argument: -%s" % name,
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    flag=name,
                    hint="pass a value after a space or '=' (for example: -%s=<%s>)" % (name, flag.label or "value"),
                )
            value = self._args.pop(0)
        self._assign(flag, value)
        return True

    def parse(self, arguments, /):
        """
        parse flags from arguments (the command tag already dropped).

        returns None on success, or the fault when the set continues on error.
        """
        self._parsed = True
        self._args = list(arguments)
        try:
            while self._parse_one():
                pass
        except ParseError as error:
            fault = error
        else:
            return None
        return self.trigger(fault)

    def visit(self, function, /):
        """
        call function(flag) for every flag that has been set, in registration order.
        """
        for name, flag in self._formal.items():
            if name in self._actual:
                function(flag)

    def visit_all(self, function, /):
        for flag in self._formal.values():
            function(flag)

    def nflag(self):
        return len(self._actual)

    def arg(self, index, /):
        try:
            return self._args[index] if index >= 0 else ""
        except IndexError:
            return ""

    def narg(self):
        return len(self._args)

    def usage(self, output=Unset, /):
        """
        render one entry per registered flag to output (the set's output when Unset).
        """
        styles = palette({
            "flag-name": "bold #22C55E",
            "flag-label": "bold #FFD600",
            "flag-usage": "#9CA3AF",
            "flag-default": "#737373",
        })

        def text(fragment, style):
            return styled(fragment, styles[style], colorful=self._colorful)

        render = console(coalesce(output, self.out))
        for flag in self._formal.values():
            line = Text("  ").append(text("-" + flag.name, "flag-name"))
            if label := flag.label:
                line.append(" ").append(text(label, "flag-label"))
            line.append("\n" + " " * 8).append(text(flag.text, "flag-usage"))
            if flag.default != flag.value.kind.zero:
                shown = flag.value.kind.format(flag.default)
                if flag.value.kind in (Kind.STRING, Kind.REGEX):
                    shown = '"%s"' % shown
                line.append(text(" (default %s)" % shown, "flag-default"))
            render.print(line)

    def __repr__(self):
        return f"flag-set(name={self._name!r}, flags={list(self._formal)!r})"


__all__ = (
    "Flag",
    "FlagSet",
)

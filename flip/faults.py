"""
Flip faults (configuration and parse errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing fault.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- ErrorHandling: the policy a FlagSet applies to its faults (continue, exit, abort).
- FlipException and subclasses: carry message + options and know how to render
  themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault under a given policy.
- getdoc(): optional description lookup for a code from the host application.

Policies
- CONTINUE: the fault is handed back to the caller as a value; nothing is printed.
  Configuration faults have nothing to hand back and are raised instead.
- EXIT: the fault (and usage, when a renderer is supplied) is printed and the
  process exit is requested through SystemExit.
- ABORT: the fault is raised.

Integration
- FlagSet collects the runtime options (policy, output stream, usage renderer,
  program name) and calls trigger(fault, **options).
"""
from enum import Enum, IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset, coalesce, console, palette, styled


class FaultCode(IntEnum):
    """
    canonical fault codes used across flip (stable identifiers).

    grouping (by high-level domain)
    - configuration (101xx)
      • DUPLICATE_FLAG, DUPLICATE_COMMAND, UNKNOWN_GROUP
    - dispatch (111xx)
      • NO_COMMAND
    - flags (1111x)
      • MALFORMED_FLAG, UNKNOWN_FLAG, MISSING_VALUE, INVALID_VALUE,
        FAILED_VALIDATION, HELP_REQUESTED
    """
    # --- configuration errors (10xxx) ---
    DUPLICATE_FLAG      = 10101
    DUPLICATE_COMMAND   = 10102
    UNKNOWN_GROUP       = 10103

    # --- dispatch errors (11xxx) ---
    NO_COMMAND          = 11101

    # --- flag errors (11xxx) ---
    MALFORMED_FLAG      = 11111
    UNKNOWN_FLAG        = 11112
    MISSING_VALUE       = 11113
    INVALID_VALUE       = 11114
    FAILED_VALIDATION   = 11115
    HELP_REQUESTED      = 11116

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ErrorHandling(Enum):
    CONTINUE = "continue"
    EXIT = "exit"
    ABORT = "abort"


class FlipException(Exception):
    """
    base fault: a message plus read-only options used for rendering and policy.

    recognised options
    - title, code, hint: copy shown by __rich__.
    - prog: program/flag-set name shown in the header.
    - errors: ErrorHandling policy applied by __trigger__ (default ABORT).
    - output: stream the EXIT policy prints to.
    - usage: zero-argument callable printing usage after the fault (EXIT policy).
    - colorful: whether styles are applied.
    """
    __status__ = -2

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | type(Unset))
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        styles = palette({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })
        colorful = self.options.get("colorful", True)

        def text(fragment, style):
            return styled(fragment, styles[style], colorful=colorful)

        prog = getattr(__import__("__main__"), "__prog__", self.options.get("prog", "flip"))
        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " - ",
            text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
            " | ",
            text(self.options.get("title", type(self).__name__).title(), "error-title"),
            " ]"
        )
        parts = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*parts)

    def __trigger__(self):
        match self.options.get("errors", ErrorHandling.ABORT):
            case ErrorHandling.CONTINUE:
                return self
            case ErrorHandling.EXIT:
                console(self.options.get("output", Unset)).print(self)
                if usage := self.options.get("usage"):
                    usage()
                raise SystemExit(type(self).__status__)
            case _:
                raise self

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(FlipException):
    def __trigger__(self):
        if self.options.get("errors", ErrorHandling.ABORT) is ErrorHandling.CONTINUE:
            raise self
        return super().__trigger__()


class DuplicateFlagError(ConfigurationError): ...
class DuplicateCommandError(ConfigurationError): ...
class UnknownGroupError(ConfigurationError): ...


class ParseError(FlipException): ...
class MalformedFlagError(ParseError): ...
class UnknownFlagError(ParseError): ...
class MissingValueError(ParseError): ...
class InvalidValueError(ParseError): ...
class ValidationError(InvalidValueError): ...


class HelpRequested(ParseError):
    __status__ = 0

    def __trigger__(self):
        # usage was already printed when the request was recognised
        if self.options.get("errors", ErrorHandling.ABORT) is ErrorHandling.EXIT:
            raise SystemExit(type(self).__status__)
        return super().__trigger__()


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see FlipException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - returns whatever __trigger__ returns (the fault itself under CONTINUE).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ErrorHandling",
    "FlipException",
    "ConfigurationError",
    "DuplicateFlagError",
    "DuplicateCommandError",
    "UnknownGroupError",
    "ParseError",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingValueError",
    "InvalidValueError",
    "ValidationError",
    "HelpRequested",
    "trigger",
    "getdoc",
)

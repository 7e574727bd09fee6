r"""
Flip values: typed, settable/gettable cells behind every flag.

Overview
- Kind: the closed set of value kinds (bool, int32, int64, uint32, uint64, string,
  float64, duration, regex). A kind knows its zero value, the type label shown in
  usage, how to parse a command-line literal and how to format a value back.
- Storage strategies
  • Owned: a private slot held by the value itself.
  • Contained: a key into an externally owned container (anything exposing
    get(key) / set(key, value)); every read and write is forwarded, nothing is cached.
- Value: a kind plus a storage strategy. set(text) parses and stores, get() reads.
- RegexValue: a string value whose input must pass a validator over compiled patterns.

Literal grammars
- bool: 1 t T TRUE true True / 0 f F FALSE false False
- integers: optional sign (unsigned kinds refuse one), base prefixes 0x/0o/0b, legacy
  leading-zero octal, '_' separators; range-checked against the kind's width.
- float64: decimal or hexadecimal floats, inf/nan spellings; no surrounding blanks.
- duration: '0' or a sequence of <decimal><unit> (units ns, us, µs, ms, s, m, h) with
  an optional leading sign, e.g. '1h30m', '1.5s', '-300ms'. Values are timedelta, so
  anything below a microsecond is truncated.

Quick example:
    >>> value = Value(Kind.DURATION, Owned(Kind.DURATION.zero))
    >>> value.set("8m20s")
    >>> value.get()
    datetime.timedelta(seconds=500)
    >>> str(value)
    '8m20s'
"""
import math
import re
from datetime import timedelta
from enum import Enum
from typing import Protocol, runtime_checkable


@runtime_checkable
class Container(Protocol):
    """
    External shared key-value store backing contained values.
    """

    def get(self, key, /): ...

    def set(self, key, value, /): ...


class Owned:
    __slots__ = ("_value",)

    def __init__(self, value, /):
        self._value = value

    def get(self):
        return self._value

    def set(self, value, /):
        self._value = value

    def __repr__(self):
        return f"owned({self._value!r})"


class Contained:
    __slots__ = ("_container", "_key")

    def __init__(self, container, key, /):
        if not isinstance(container, Container):
            raise TypeError("contained storage requires an object with get(key) and set(key, value)")
        self._container = container
        self._key = key

    @property
    def key(self):
        return self._key

    def get(self):
        return self._container.get(self._key)

    def set(self, value, /):
        self._container.set(self._key, value)

    def __repr__(self):
        return f"contained({self._key!r})"


_BOOLEANS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def _parse_bool(text, /):
    try:
        return _BOOLEANS[text]
    except KeyError:
        raise ValueError("invalid syntax") from None


def _parse_integer(text, /, *, bits, signed):
    if not text or not text.isascii() or text != text.strip():
        raise ValueError("invalid syntax")
    body = text[1:] if text[0] in "+-" else text
    if body is not text and not signed:
        raise ValueError("invalid syntax")
    if not body or body[0] in "+-_":
        raise ValueError("invalid syntax")
    try:
        # Legacy octal: a leading zero followed by octal digits (e.g. 0755).
        number = int(body, 8) if re.fullmatch(r"0[0-7_]+", body) else int(body, 0)
    except ValueError:
        raise ValueError("invalid syntax") from None
    if text[0] == "-":
        number = -number
    low, high = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
    if not low <= number <= high:
        raise ValueError("value out of range")
    return number


def _parse_float(text, /):
    if not text or not text.isascii() or text != text.strip():
        raise ValueError("invalid syntax")
    try:
        if re.match(r"[+-]?0[xX]", text):
            # hexadecimal floats need a binary exponent (0x1.8p0, not 0x1.8)
            if not re.search(r"[pP]", text):
                raise ValueError
            return float.fromhex(text.replace("_", ""))
        if "_" in text:
            raise ValueError
        number = float(text)
    except OverflowError:
        raise ValueError("value out of range") from None
    except ValueError:
        raise ValueError("invalid syntax") from None
    if math.isinf(number) and text.lstrip("+-").lower() not in ("inf", "infinity"):
        raise ValueError("value out of range")
    return number


def _parse_string(text, /):
    return text


# Nanoseconds per unit; durations are accumulated in integer nanoseconds.
_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# Durations are bounded like a signed 64-bit count of nanoseconds.
_LONGEST = (1 << 63) - 1

_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")


def _parse_duration(text, /):
    literal, sign = text, 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("invalid duration %r" % literal)
    total = 0
    while text:
        match = _COMPONENT.match(text)
        whole, fraction, unit = match.group(1), match.group(2) or "", match.group(3)
        if not whole and not fraction:
            raise ValueError("invalid duration %r" % literal)
        if not unit:
            raise ValueError("missing unit in duration %r" % literal)
        if unit not in _UNITS:
            raise ValueError("unknown unit %r in duration %r" % (unit, literal))
        scale = _UNITS[unit]
        total += int(whole or "0") * scale
        if fraction:
            total += int(fraction) * scale // 10 ** len(fraction)
        if total > _LONGEST:
            raise ValueError("invalid duration %r" % literal)
        text = text[match.end():]
    return sign * timedelta(microseconds=total // 1_000)


def _format_bool(value, /):
    return "true" if value else "false"


def _format_float(value, /):
    if value == value and abs(value) < 1e21 and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _decimal(whole, part, digits, /):
    text = str(whole)
    if part:
        text += "." + f"{part:0{digits}d}".rstrip("0")
    return text


def _format_duration(value, /):
    micros = value // timedelta(microseconds=1)
    sign, micros = ("-" if micros < 0 else ""), abs(micros)
    if micros == 0:
        return "0s"
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return sign + _decimal(*divmod(micros, 1_000), 3) + "ms"
    seconds, part = divmod(micros, 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    tail = _decimal(seconds, part, 6) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{tail}"
    if minutes:
        return f"{sign}{minutes}m{tail}"
    return sign + tail


class Kind(Enum):
    """
    value kinds: (identifier, usage label, zero value).
    """
    BOOL = "bool", "", False
    INT32 = "int32", "int", 0
    INT64 = "int64", "int", 0
    UINT32 = "uint32", "uint", 0
    UINT64 = "uint64", "uint", 0
    STRING = "string", "string", ""
    FLOAT64 = "float64", "float", 0.0
    DURATION = "duration", "duration", timedelta(0)
    REGEX = "regex", "string", ""

    def __init__(self, identifier, label, zero):
        self.identifier = identifier
        self.label = label
        self.zero = zero

    def parse(self, text, /):
        """
        parse a command-line literal; raises ValueError with a short reason.
        """
        return _PARSERS[self](text)

    def format(self, value, /):
        return _FORMATTERS.get(self, str)(value)


_PARSERS = {
    Kind.BOOL: _parse_bool,
    Kind.INT32: lambda text: _parse_integer(text, bits=32, signed=True),
    Kind.INT64: lambda text: _parse_integer(text, bits=64, signed=True),
    Kind.UINT32: lambda text: _parse_integer(text, bits=32, signed=False),
    Kind.UINT64: lambda text: _parse_integer(text, bits=64, signed=False),
    Kind.STRING: _parse_string,
    Kind.FLOAT64: _parse_float,
    Kind.DURATION: _parse_duration,
    Kind.REGEX: _parse_string,
}

_FORMATTERS = {
    Kind.BOOL: _format_bool,
    Kind.FLOAT64: _format_float,
    Kind.DURATION: _format_duration,
}


class Value:
    """
    A typed cell: a fixed Kind over an Owned or Contained storage strategy.
    """
    __slots__ = ("_kind", "_storage")

    def __init__(self, kind, storage, /):
        if not isinstance(kind, Kind):
            raise TypeError("Value() first argument must be a kind")
        self._kind = kind
        self._storage = storage

    @property
    def kind(self):
        return self._kind

    @property
    def storage(self):
        return self._storage

    @property
    def is_bool(self):
        return self._kind is Kind.BOOL

    def get(self):
        return self._storage.get()

    def set(self, text, /):
        self._storage.set(self._kind.parse(text))

    def __str__(self):
        return self._kind.format(self.get())

    def __repr__(self):
        return f"{self._kind.identifier}-value({self.get()!r})"


class PatternMismatch(ValueError):
    """
    raised by RegexValue.set when the validator rejects the input.
    """


def matches(text, /, *patterns):
    """
    default regex validator: every pattern must match somewhere in the input.
    """
    for pattern in patterns:
        if not pattern.search(text):
            return "no match for %r, where expected match" % pattern.pattern
    return None


class RegexValue(Value):
    """
    A string value validated against compiled patterns.

    The validator is called as validator(text, *patterns); returning anything other
    than None (a message or an exception), or raising ValueError, rejects the input.
    get() returns the accepted input, the patterns remain available as .patterns.
    """
    __slots__ = ("_validator", "_patterns")

    def __init__(self, storage, validator=None, /, *patterns):
        super().__init__(Kind.REGEX, storage)
        if validator is not None and not callable(validator):
            raise TypeError("RegexValue() validator must be callable")
        self._validator = validator if validator is not None else matches
        self._patterns = tuple(re.compile(pattern) for pattern in patterns)

    @property
    def patterns(self):
        return self._patterns

    def set(self, text, /):
        try:
            result = self._validator(text, *self._patterns)
        except ValueError as error:
            result = error
        if result is not None:
            raise PatternMismatch("'%s | %s': %s" % (
                ", ".join(pattern.pattern for pattern in self._patterns), text, result
            ))
        self._storage.set(text)


__all__ = (
    "Container",
    "Owned",
    "Contained",
    "Kind",
    "Value",
    "RegexValue",
    "PatternMismatch",
    "matches",
)

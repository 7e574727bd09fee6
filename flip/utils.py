"""
Flip utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the value, flag, command and dispatch layers.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the higher-level registration and rendering code.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/"".

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr); containers
    are handed out as fresh copies so callers cannot mutate registry state.

- unquote_usage(text)
  • Extract the back-quoted placeholder of a usage string (the label shown next to a flag).

- palette(defaults) / console(output) / styled(fragment, style)
  • Rendering plumbing on top of rich: host style overrides, stream-bound consoles,
    and plain/styled Text construction.

Usage guidance
- Prefer Unset for API defaults when None is a meaningful user value; materialize with coalesce().
- Rendering code asks palette() for its styles so that a host can override any entry
  through a mapping named __styles__ in __main__.
"""
import builtins
import functools
import sys
from collections import defaultdict
from collections.abc import Sequence, Mapping, Set
from typing import final

from rich.console import Console
from rich.text import Text


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value, but the API needs a way
    to distinguish “not provided” from “provided as None”. A single instance,
    Unset, is exposed for use as the default in internal parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0 or "" are preserved as-is; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Copy container values one level deep so the caller gets a detached snapshot.

    - Sequence (non-string) → tuple
    - Mapping → dict copy
    - Set → frozenset
    - anything else is returned as-is
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(object)
    elif isinstance(object, Mapping):
        return dict(object)
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private backing attribute "_{name}".
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def unquote_usage(text, /):
    """
    Split a usage string into (placeholder, usage).

    The first back-quoted word of the text is the placeholder shown next to the flag
    name in rendered usage; the back quotes themselves are dropped from the text.
    A lone back quote (no closing pair) is left untouched and yields no placeholder.

    Examples
    - unquote_usage("a float flag `FLOAT64`")   -> ("FLOAT64", "a float flag FLOAT64")
    - unquote_usage("a `(not a typo) flag")     -> ("", "a `(not a typo) flag")
    """
    if (start := text.find("`")) >= 0:
        if (stop := text.find("`", start + 1)) >= 0:
            placeholder = text[start + 1:stop]
            return placeholder, text[:start] + placeholder + text[stop + 1:]
    return "", text


def palette(defaults, /):
    """
    Merge a renderer's default styles with the host overrides found in __main__.__styles__.

    Unknown keys resolve to the empty style, so renderers can ask for any entry.
    """
    return defaultdict(str, dict(defaults) | getattr(__import__("__main__"), "__styles__", {}))


def console(output=Unset, /):
    """
    Build a rich Console writing to `output` (sys.stdout when Unset).

    Highlighting is off so that flag names and numbers keep the renderer's own
    styles; when the stream is not a terminal, rich emits plain text.
    """
    return Console(file=coalesce(output, sys.stdout), highlight=False, soft_wrap=True)


def styled(fragment, style="", /, *, colorful=True):
    """
    Normalize a fragment to rich Text; styles are dropped unless colorful is set.
    """
    if isinstance(fragment, Text):
        return fragment if colorful else Text(fragment.plain)
    return Text(str(fragment), style if colorful else "")


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "unquote_usage",
    "palette",
    "console",
    "styled",
)

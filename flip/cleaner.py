"""
Cleanup registry keyed by exit status.

A Cleaner maps each ExitStatus to an ordered list of callbacks. run_cleanup(status, ctx)
runs that bucket, then the ExitStatus.ANY bucket, both in registration order.

Callbacks receive the (possibly command-mutated) context. They never terminate the
process: a callback that wants the dispatch to report something else returns an
Outcome, and run_cleanup hands back the last such override (None otherwise).
ExitStatus.NO means "keep dispatching" and is not a valid bucket.
"""
import logging
from collections import defaultdict

from .commands import ExitStatus, Outcome

logger = logging.getLogger(__name__)


class Cleaner:

    def __init__(self):
        self._cleanups = defaultdict(list)

    def set_cleanup(self, status, /, *callbacks):
        status = ExitStatus(status)
        if status is ExitStatus.NO:
            raise ValueError("set_cleanup() status ExitStatus.NO is not a cleanup bucket")
        for callback in callbacks:
            if not callable(callback):
                raise TypeError("set_cleanup() callbacks must be callable")
        self._cleanups[status].extend(callbacks)

    def get_cleanup(self, status, /):
        return tuple(self._cleanups.get(ExitStatus(status), ()))

    def run_cleanup(self, status, ctx, /):
        override = None
        for callback in (*self._cleanups.get(status, ()), *self._cleanups.get(ExitStatus.ANY, ())):
            logger.debug("running %s cleanup %r", ExitStatus(status).name, callback)
            if isinstance(result := callback(ctx), Outcome):
                override = result
        return override


__all__ = (
    "Cleaner",
)

import logging
import typing as t

TRACE = 5


class TraceLogLevelLogger(logging.Logger):
    """Logger with a level below DEBUG, for per-row detail such as each graded answer"""

    def trace(self, message: str, *args: t.Any, **kwargs: t.Any):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, message, args, **kwargs)

import logging
import pydoc
import sys
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from gradebook.lib import json

from .style import LogStyle

# attributes every LogRecord carries; anything else on a record came in through extra=
RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "asctime",
    "color_message",
    "log_color",
    "message",
}


def _resolve_formatter(base: type[logging.Formatter] | str) -> type[logging.Formatter]:
    # dictConfig passes "()" factory arguments through untouched, so a class named in YAML is still a string
    if isinstance(base, str):
        located = pydoc.locate(base)
        if not (isinstance(located, type) and issubclass(located, logging.Formatter)):
            raise ValueError(f"{base!r} is not a logging.Formatter")
        return located
    return base


def _encode_fallback(obj: t.Any) -> t.Any:
    try:
        return json.JSONEncoder().default(obj)
    except TypeError:
        return repr(obj)


class ExtraFormatter(logging.Formatter):
    """
    Formats a record with ``base`` and appends its ``extra={...}`` fields as
    JSON, e.g.

        INFO     2026-10-17 09:12:03 gradebook.grading.gradebook: graded student {"percentage": 85.0}

    The JSON is highlighted with pygments when stderr is a terminal and the
    base formatter has not been told ``no_color``.
    """

    def __init__(
        self,
        base: type[logging.Formatter] | str,
        format: str | None,
        datefmt: str | None = None,
        indent: bool = False,
        pyg_style: type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        **kwargs: t.Any,
    ):
        super().__init__(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults)
        self.base = _resolve_formatter(base)(
            format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs
        )
        self.indent = indent
        self.pyg_style = pyg_style

    @property
    def colorize(self) -> bool:
        return not getattr(self.base, "no_color", False) and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        message = self.base.format(record)
        extra = {k: v for k, v in vars(record).items() if k not in RECORD_ATTRIBUTES}
        if not extra:
            return message

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), default=_encode_fallback)
        if self.colorize:
            js = pygments.highlight(  # pyright: ignore [reportUnknownMemberType]
                js, JsonLexer(), Terminal256Formatter(style=self.pyg_style)
            ).strip()
        return f"{message} {js}"

from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

# Commands import this module as ``click``: it is Click plus the parameter
# types below.


class EnumType(click.ParamType):
    """A parameter whose value is a member of ``enum``, given by its value"""

    def __init__(self, enum: type[enum.Enum]):
        self.enum = enum
        self.name = enum.__name__

    def convert(
        self, value: str | enum.Enum | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> enum.Enum | None:
        if value is None or isinstance(value, self.enum):
            return value
        try:
            return self.enum(value)
        except ValueError:
            self.fail(f"expected one of {[e.value for e in self.enum]}", param, ctx)


class URIParamType(click.ParamType):
    """
    A URI, or a filesystem path which is turned into a ``file://`` URI.
    Local paths must exist; directories are refused unless ``dir_ok``.
    """

    name = "URI OR PATH"

    def __init__(self, dir_ok: bool = False):
        self.dir_ok = dir_ok

    def convert(
        self, value: str | pathlib.Path | p.AnyUrl | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> p.AnyUrl | None:
        if value is None or isinstance(value, p.AnyUrl):
            return value

        if isinstance(value, pathlib.Path) or "://" not in value:
            path = pathlib.Path(value).absolute()
        else:
            url = p.AnyUrl(value)
            if url.scheme != "file":
                return url
            if url.path is None:
                self.fail("file path not specified", param, ctx)
            path = pathlib.Path(t.cast(str, url.path))

        if not path.exists():
            self.fail(f"{value}: no such file or directory", param, ctx)
        if path.is_dir() and not self.dir_ok:
            self.fail("directory path not accepted", param, ctx)
        return p.FileUrl(f"file://{path}")

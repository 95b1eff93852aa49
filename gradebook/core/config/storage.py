from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p

from .base import BaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings


class PersistentSettings(BaseSettings):
    """Exactly one backend is configured; PostgreSQL wins if both are present."""

    postgresql: PostgresqlSettings | None = None
    sqlite: SqliteSettings | None = None
    echo: bool = False

    @p.model_validator(mode="after")
    def require_backend(self) -> t.Self:
        if self.postgresql is None and self.sqlite is None:
            raise ValueError("storage.persistent requires a postgresql or sqlite section")
        return self


class PostgresqlSettings(BaseSettings):
    host: p.IPvAnyAddress | str | None = None
    port: int = 5432
    database: str
    driver: t.Literal["postgresql+psycopg"] = "postgresql+psycopg"


class SqliteSettings(BaseSettings):
    # ":memory:" keeps the whole database inside a single shared connection
    path: Path | t.Literal[":memory:"] = ":memory:"
    driver: t.Literal["sqlite+pysqlite"] = "sqlite+pysqlite"

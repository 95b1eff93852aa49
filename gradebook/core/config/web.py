from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class WebSettings(BaseSettings):
    gradebook: GradebookWebSettings


class ServeSettings(BaseSettings):
    host: p.IPvAnyAddress
    port: t.Annotated[int, ant.Gt(0), ant.Le(65535)]


class AuthSettings(BaseSettings):
    """Bearer tokens are issued by the identity provider; we only verify them."""

    jwt_algorithm: str = "HS256"
    leeway_seconds: int = 0


class GradebookWebSettings(BaseSettings):
    backend: ServeSettings
    frontend: ServeSettings | None = None
    auth: AuthSettings = AuthSettings()
    cors_origins: list[str] = []

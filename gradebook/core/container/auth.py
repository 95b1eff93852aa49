"""Authentication container for dependency injection."""

from __future__ import annotations

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, Singleton

from gradebook.auth.jwt import JWTManager


class AuthContainer(DeclarativeContainer):
    """Bearer-token verification; tokens are issued by the identity provider."""

    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    jwt_manager: Provider[JWTManager] = Singleton(
        JWTManager,
        secret_key=secrets.jwt,
        algorithm=config.jwt_algorithm,
        leeway_seconds=config.leeway_seconds,
    )

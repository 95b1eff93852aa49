"""Bearer-token verification.

Tokens are minted by the identity provider; this service only checks them.
"""

from __future__ import annotations

import datetime
import typing as t

import jwt
import pydantic as p

from gradebook.model import UserID


class TokenPayload(t.TypedDict):
    """JWT token payload structure."""

    sub: str  # user_id
    role: str  # informational; the stored user record is authoritative
    exp: int  # expiration timestamp
    iat: int  # issued at timestamp


class TokenData(t.NamedTuple):
    """Decoded token data."""

    user_id: UserID
    role: str | None
    expires_at: datetime.datetime
    issued_at: datetime.datetime


class JWTManager(object):
    """Validates JWTs signed with the shared secret."""

    _secret_key: p.Secret[str]
    _algorithm: str
    _leeway: datetime.timedelta

    def __init__(
        self,
        secret_key: p.Secret[str] | str,
        algorithm: str = "HS256",
        leeway_seconds: int = 0,
    ) -> None:
        self._secret_key = secret_key if isinstance(secret_key, p.Secret) else p.Secret(secret_key)
        self._algorithm = algorithm
        self._leeway = datetime.timedelta(seconds=leeway_seconds or 0)

    @property
    def secret_key(self) -> str:
        return self._secret_key.get_secret_value()

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def decode_token(self, token: str) -> TokenData | None:
        """Decode and validate a token.

        Returns:
            TokenData if valid, None if the token is malformed, expired,
            badly signed or does not name a user
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self._algorithm],
                leeway=self._leeway,
                options={"require": ["sub", "exp", "iat"]},
            )
            return TokenData(
                user_id=UserID(payload["sub"]),
                role=payload.get("role"),
                expires_at=datetime.datetime.fromtimestamp(payload["exp"], tz=datetime.UTC),
                issued_at=datetime.datetime.fromtimestamp(payload["iat"], tz=datetime.UTC),
            )
        except jwt.InvalidTokenError:
            return None
        except ValueError:
            # sub is not a well-formed user id
            return None

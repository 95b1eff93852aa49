"""Authentication dependencies for FastAPI routes."""

from __future__ import annotations

import logging
import typing as t

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from gradebook.core import di
from gradebook.model import User, UserRole
from gradebook.storage import user as user_storage

from .jwt import JWTManager, TokenData

logger = logging.getLogger(__name__)

# Security scheme for JWT bearer tokens
bearer_scheme = HTTPBearer(auto_error=False)


@di.inject
def decode_token(token: str, jwt_manager: JWTManager = di.Provide["auth.jwt_manager"]) -> TokenData | None:
    return jwt_manager.decode_token(token)


class AuthContext(t.NamedTuple):
    """Current authentication context."""

    user: User
    role: UserRole
    token_data: TokenData


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@di.inject
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token: str | None = Query(None, description="JWT token (for download links, which can't set headers)"),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuthContext:
    """Dependency to get the current authenticated user.

    Accepts token from either:
    - Authorization: Bearer header (preferred)
    - ?token= query parameter (for CSV download links)

    The role comes from the stored user, not from the token's claim.

    Raises:
        HTTPException 401: If no token provided or token is invalid
        HTTPException 401: If user not found
    """
    raw_token: str | None = None
    if credentials is not None:
        raw_token = credentials.credentials
    elif token is not None:
        raw_token = token

    if raw_token is None:
        raise _unauthorized("Not authenticated")

    token_data = decode_token(raw_token)
    if token_data is None:
        raise _unauthorized("Invalid or expired token")

    with session.begin():
        user = user_storage.get(token_data.user_id, session=session)
    if user is None:
        logger.warning("token names an unknown user", extra={"user_id": token_data.user_id})
        raise _unauthorized("User not found")

    return AuthContext(user=user, role=user.role, token_data=token_data)


def require_role(
    *allowed_roles: UserRole,
) -> t.Callable[..., AuthContext]:
    """Dependency factory to require specific roles.

    Usage:
        @router.post("/quizzes")
        def create_quiz(auth: AuthContext = Depends(require_role(UserRole.Instructor))):
            ...
    """

    def check_role(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{auth.role.value}' not authorized for this resource",
            )
        return auth

    return check_role


# Convenience dependencies
require_student = require_role(UserRole.Student)

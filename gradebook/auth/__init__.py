"""Authentication utilities."""

__all__ = [
    "AuthContext",
    "JWTManager",
    "TokenData",
    "get_current_user",
    "is_course_staff",
    "require_course",
    "require_course_staff",
    "require_course_staff_or_self",
    "require_role",
    "require_student",
]

from .jwt import JWTManager, TokenData
from .middleware import AuthContext, get_current_user, require_role, require_student
from .policy import is_course_staff, require_course, require_course_staff, require_course_staff_or_self

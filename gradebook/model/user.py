import enum

from pydantic import EmailStr

from .base import WithTimestamps
from .id import CourseID, UserID


class UserRole(enum.Enum):
    Student = "student"
    Instructor = "instructor"
    Admin = "admin"


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole = UserRole.Student


class Course(WithTimestamps):
    """The slice of a course the grading core needs: who may manage its grades"""

    course_id: CourseID
    title: str
    instructor_id: UserID

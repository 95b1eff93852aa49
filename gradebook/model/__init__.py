__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    "Points",
    "Percentage",
    # Enums
    "DeploymentEnvironment",
    "LetterGrade",
    # ID Types
    "UserID",
    "CourseID",
    "GradeColumnID",
    "GradeHistoryID",
    "QuizID",
    "QuestionID",
    "QuizAttemptID",
    # Users & Courses
    "User",
    "UserRole",
    "Course",
    # Gradebook
    "GradeColumn",
    "GradeColumnType",
    "GradeEntry",
    "GradeAggregate",
    "StudentGradeRecord",
    "StudentGradeRow",
    "GradeHistory",
    "GradeStatistics",
    "GradeCenter",
    # Quizzes
    "Quiz",
    "QuizStatus",
    "QuizQuestion",
    "QuestionType",
    "QuizAttempt",
    "GradedAnswer",
    "QuizStatistics",
    "QuestionStatistics",
]

from .base import BaseModel, Percentage, Points, WithCtime, WithMtime, WithTimestamps
from .enum import DeploymentEnvironment, LetterGrade
from .grade import GradeAggregate, GradeCenter, GradeColumn, GradeColumnType, GradeEntry, GradeHistory, \
    GradeStatistics, StudentGradeRecord, StudentGradeRow
from .id import CourseID, GradeColumnID, GradeHistoryID, QuestionID, QuizAttemptID, QuizID, UserID
from .quiz import GradedAnswer, QuestionStatistics, QuestionType, Quiz, QuizAttempt, QuizQuestion, QuizStatistics, \
    QuizStatus
from .user import Course, User, UserRole

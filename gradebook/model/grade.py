import datetime
import enum

import pydantic as p

from .base import BaseModel, Points, WithTimestamps
from .enum import LetterGrade
from .id import CourseID, GradeColumnID, GradeHistoryID, UserID


class GradeColumnType(enum.Enum):
    Assignment = "assignment"
    Exam = "exam"
    Quiz = "quiz"
    Participation = "participation"
    Custom = "custom"
    Total = "total"


class GradeColumn(WithTimestamps):
    column_id: GradeColumnID
    course_id: CourseID
    name: str
    type: GradeColumnType
    points: int = p.Field(gt=0)
    weight: float | None = None
    category: str | None = None
    linked_assignment_id: str | None = None
    visible_to_students: bool = True
    include_in_calculations: bool = True
    order: int
    created_by: UserID


class GradeEntry(BaseModel):
    """One student's score for one column, as embedded in their grade record"""

    column_id: GradeColumnID
    column_name: str
    column_type: GradeColumnType
    grade: Points
    max_points: int
    percentage: float
    letter_grade: LetterGrade
    is_override: bool = False
    override_reason: str | None = None
    graded_by: UserID
    graded_at: datetime.datetime


class GradeAggregate(BaseModel):
    overall_points_earned: float = 0.0
    overall_points_possible: float = 0.0
    overall_percentage: float = 0.0
    overall_letter_grade: LetterGrade = LetterGrade.F


class StudentGradeRecord(GradeAggregate, WithTimestamps):
    """
    Cached per-student summary of every grade entry in a course.

    The overall_* fields are derived; they are rewritten together with the
    entry map in the same transaction whenever an entry changes.
    """

    course_id: CourseID
    student_id: UserID
    grades: dict[GradeColumnID, GradeEntry] = {}
    calculated_at: datetime.datetime | None = None


class StudentGradeRow(StudentGradeRecord):
    """A grade record joined with the student's display details"""

    student_name: str
    student_email: str


class GradeHistory(BaseModel):
    history_id: GradeHistoryID
    course_id: CourseID
    student_id: UserID
    column_id: GradeColumnID
    column_name: str
    old_grade: float
    new_grade: float
    old_percentage: float | None = None
    new_percentage: float
    changed_by: UserID
    changed_by_name: str | None = None
    reason: str | None = None
    is_override: bool = False
    changed_at: datetime.datetime


class GradeStatistics(BaseModel):
    column_id: GradeColumnID
    column_name: str
    mean: float
    median: float
    min: float
    max: float
    std_deviation: float
    total_graded: int
    total_students: int
    grade_distribution: dict[LetterGrade, int] = {}


class GradeCenter(BaseModel):
    columns: list[GradeColumn]
    students: list[StudentGradeRow]

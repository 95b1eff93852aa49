"""Grade and quiz computation.

The modules here are pure; the ``gradebook`` and ``quiz`` service modules
combine them with storage.
"""

__all__ = [
    # Errors
    "GradebookError",
    "NotFound",
    "Forbidden",
    "ValidationFailed",
    "BusinessRuleViolation",
    "NotAvailable",
    "NotPublished",
    "MaxAttemptsExceeded",
    "AlreadySubmitted",
    "AttemptConflict",
    "InvalidTransition",
    # Computation
    "letter_grade",
    "percentage",
    "build_entry",
    "compute_aggregate",
    "describe",
    "column_statistics",
    "quiz_statistics",
    "grade_answer",
    "score_attempt",
    "export_csv",
]

from .aggregate import build_entry, compute_aggregate, percentage
from .errors import AlreadySubmitted, AttemptConflict, BusinessRuleViolation, Forbidden, GradebookError, \
    InvalidTransition, MaxAttemptsExceeded, NotAvailable, NotFound, NotPublished, ValidationFailed
from .export import export_csv
from .letter import letter_grade
from .scoring import grade_answer, score_attempt
from .statistics import column_statistics, describe, quiz_statistics

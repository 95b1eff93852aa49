"""Errors raised by the grading services.

Each carries a message meant for the caller and the HTTP status the web
layer answers with.
"""


class GradebookError(Exception):
    """Base class for failures the web layer reports back to the caller"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(GradebookError):
    status_code = 404


class Forbidden(GradebookError):
    status_code = 403


class ValidationFailed(GradebookError):
    status_code = 400


class BusinessRuleViolation(GradebookError):
    status_code = 400


class NotAvailable(BusinessRuleViolation): ...


class NotPublished(BusinessRuleViolation): ...


class MaxAttemptsExceeded(BusinessRuleViolation): ...


class AlreadySubmitted(BusinessRuleViolation): ...


class AttemptConflict(BusinessRuleViolation): ...


class InvalidTransition(BusinessRuleViolation): ...

"""Workflow error taxonomy.

Every failure raised by the request store and the workflow engine is a
WorkflowError. The API layer turns them into JSON responses with the
``status_code`` and ``code`` defined here; the HTTP client maps them back.
"""

from typing import Dict, Optional, Type


class WorkflowError(Exception):
    """Base class for membership workflow errors."""

    status_code = 400
    code = "workflow_error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.__class__.__doc__.strip().splitlines()[0]
        super().__init__(self.detail)


class ValidationError(WorkflowError):
    """Request payload failed validation."""

    status_code = 422
    code = "validation_error"


class Conflict(WorkflowError):
    """The request conflicts with existing state."""

    status_code = 409
    code = "conflict"


class Forbidden(WorkflowError):
    """The acting user may not perform this operation."""

    status_code = 403
    code = "forbidden"


class Unauthenticated(WorkflowError):
    """Sign-in is required."""

    status_code = 401
    code = "unauthenticated"


class NotFound(WorkflowError):
    """The referenced record does not exist."""

    status_code = 404
    code = "not_found"


class InvalidTransition(WorkflowError):
    """The requested status change is not allowed."""

    status_code = 409
    code = "invalid_transition"


class AlreadyReviewed(InvalidTransition):
    """This request was already handled."""

    code = "already_reviewed"


class StaleRequest(WorkflowError):
    """The request no longer matches current state."""

    status_code = 409
    code = "stale_request"


ERRORS_BY_CODE: Dict[str, Type[WorkflowError]] = {
    error.code: error
    for error in (
        WorkflowError,
        ValidationError,
        Conflict,
        Forbidden,
        Unauthenticated,
        NotFound,
        InvalidTransition,
        AlreadyReviewed,
        StaleRequest,
    )
}

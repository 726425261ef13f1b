"""Error taxonomy for the access-request workflow.

Each error is an ``HTTPException`` so the service layer can raise it directly,
and carries a stable ``code`` so the UI can tell an unknown token from an
expired one or one that was already answered.
"""
from fastapi import HTTPException, status


class ServiceError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(status_code=self.status_code, detail={"code": self.code, "message": message})


class ValidationError(ServiceError):
    """Missing or malformed requester contact details."""

    status_code = 422
    code = "validation_error"


class NotFound(ServiceError):
    """Unknown profile or token."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Conflict(ServiceError):
    """Duplicate pending request."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class AlreadyResponded(Conflict):
    """The owner (or a concurrent call) already answered this request."""

    code = "already_responded"


class Forbidden(ServiceError):
    """Token exists but does not grant access (wrong profile or status)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class Expired(Forbidden):
    """The request lapsed; shown as a dedicated "expired" state in the UI."""

    code = "expired"

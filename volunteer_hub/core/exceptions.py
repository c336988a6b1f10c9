"""Domain errors raised by the service layer.

Every error is raised before the first write of an operation, so callers
never observe a half-applied change. The API layer renders them as
``{"error": kind, "detail": message}`` with the matching HTTP status.
"""

from fastapi import status


class DomainError(Exception):
    """Base class for errors with a stable, caller-visible kind."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class NotFoundError(DomainError):
    """Referenced volunteer, opportunity, application or attendance is absent."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(DomainError):
    """Role or ownership mismatch."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(DomainError):
    """Duplicate record, invalid source state, or suspended opportunity."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(DomainError):
    """Missing or out-of-range input."""

    kind = "validation"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

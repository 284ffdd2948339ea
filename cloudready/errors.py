"""Typed failures raised by the service and security layers.

Each error carries a machine-readable code and the HTTP status the API layer
maps it to.
"""

from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass
class FieldErrorDetail:
    """A single failed field constraint."""
    field: str
    rejected_value: Any
    message: str


class AppError(Exception):
    """Base class for failures that map to a fixed HTTP status."""

    code = "ERROR"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"

    @classmethod
    def with_id(cls, user_id: int) -> "UserNotFoundError":
        return cls(f"User not found with id: {user_id}")

    @classmethod
    def with_username(cls, username: str) -> "UserNotFoundError":
        return cls(f"User not found with username: {username}")


class ConflictError(AppError):
    code = "USER_ALREADY_EXISTS"
    status_code = 409


class ValidationFailedError(AppError):
    code = "VALIDATION_FAILED"
    status_code = 400

    def __init__(self, message: str, field_errors: Optional[List[FieldErrorDetail]] = None):
        super().__init__(message)
        self.field_errors = field_errors or []

    @classmethod
    def for_field(cls, field: str, rejected_value: Any, message: str) -> "ValidationFailedError":
        return cls(
            "Validation failed",
            [FieldErrorDetail(field=field, rejected_value=rejected_value, message=message)],
        )


class UnauthenticatedError(AppError):
    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(AppError):
    code = "ACCESS_DENIED"
    status_code = 403

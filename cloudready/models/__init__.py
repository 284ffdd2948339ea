"""Data models for cloud-ready-web."""

from cloudready.models.user import User, UserDraft, Role, DEFAULT_ROLES, normalize_roles, utcnow
from cloudready.models.page import Page, PageRequest, Sort, SortDirection
from cloudready.models.error import ErrorResponse, FieldError

__all__ = [
    "User",
    "UserDraft",
    "Role",
    "DEFAULT_ROLES",
    "normalize_roles",
    "utcnow",
    "Page",
    "PageRequest",
    "Sort",
    "SortDirection",
    "ErrorResponse",
    "FieldError",
]

"""User data models for cloud-ready-web."""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from cloudready.models.constants import (
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    WIRE_DATETIME_FORMAT,
)


class Role(str, Enum):
    """Role tag enumeration."""
    USER = "USER"
    ADMIN = "ADMIN"


DEFAULT_ROLES = (Role.USER,)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def normalize_roles(roles: Optional[Iterable[Role]]) -> List[Role]:
    """Deduplicate and sort roles; an empty or missing set becomes the default roles."""
    unique = {Role(r) for r in roles or ()}
    if not unique:
        unique = set(DEFAULT_ROLES)
    return sorted(unique, key=lambda r: r.value)


class User(BaseModel):
    """Wire representation of a persisted user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int = Field(..., description="Server-assigned user identifier")
    username: str = Field(..., description="Unique login name")
    email: str = Field(..., description="Unique email address")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    enabled: bool = Field(True, description="Account enabled status")
    roles: List[Role] = Field(default_factory=lambda: list(DEFAULT_ROLES), description="User roles")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")

    @computed_field(alias="fullName")
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @field_validator("roles")
    @classmethod
    def _normalize_roles(cls, value: List[Role]) -> List[Role]:
        return normalize_roles(value)

    @field_serializer("created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.strftime(WIRE_DATETIME_FORMAT)


class UserDraft(BaseModel):
    """Request body for creating or replacing a user.

    Read-only members a client may echo back (id, fullName, timestamps) are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: Optional[str] = Field(None, validate_default=True, examples=["johndoe"])
    email: Optional[str] = Field(None, validate_default=True, examples=["john.doe@example.com"])
    first_name: Optional[str] = Field(None, validate_default=True, examples=["John"])
    last_name: Optional[str] = Field(None, validate_default=True, examples=["Doe"])
    enabled: Optional[bool] = Field(None, description="Defaults to true when omitted")
    roles: Optional[List[Role]] = Field(None, description="Defaults to [USER] when omitted or empty")

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("Username is required")
        if not USERNAME_MIN_LENGTH <= len(value) <= USERNAME_MAX_LENGTH:
            raise ValueError(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("Email is required")
        if len(value) > EMAIL_MAX_LENGTH:
            raise ValueError(f"Email must not exceed {EMAIL_MAX_LENGTH} characters")
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise ValueError("Email should be valid")
        return value

    @field_validator("first_name")
    @classmethod
    def _check_first_name(cls, value: Optional[str]) -> str:
        return _check_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def _check_last_name(cls, value: Optional[str]) -> str:
        return _check_name(value, "Last name")

    def resolved_enabled(self) -> bool:
        return True if self.enabled is None else self.enabled

    def resolved_roles(self) -> List[Role]:
        return normalize_roles(self.roles)


def _check_name(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"{label} must not exceed {NAME_MAX_LENGTH} characters")
    return value

"""SQLAlchemy database models for cloud-ready-web."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from cloudready.database.database import Base
from cloudready.models.constants import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, USERNAME_MAX_LENGTH
from cloudready.models.user import normalize_roles, utcnow


class UserRoleDB(Base):
    """One role tag held by a user."""

    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(20), primary_key=True)


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"
    # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows.
    __table_args__ = {"sqlite_autoincrement": True}

    # Primary key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    username = Column(String(USERNAME_MAX_LENGTH), nullable=False, unique=True, index=True)
    email = Column(String(EMAIL_MAX_LENGTH), nullable=False, unique=True, index=True)

    # Profile
    first_name = Column(String(NAME_MAX_LENGTH), nullable=False)
    last_name = Column(String(NAME_MAX_LENGTH), nullable=False)

    # Access
    enabled = Column(Boolean, nullable=False, default=True)
    role_rows = relationship(
        UserRoleDB,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def role_values(self) -> list:
        return sorted(row.role for row in self.role_rows)

    def set_roles(self, roles) -> None:
        """Replace the role set, keeping rows for roles that stay."""
        wanted = {role.value for role in normalize_roles(roles)}
        self.role_rows = [row for row in self.role_rows if row.role in wanted] + [
            UserRoleDB(role=value)
            for value in sorted(wanted - {row.role for row in self.role_rows})
        ]

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from cloudready.models.user import User

        return User(
            id=self.id,
            username=self.username,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            enabled=self.enabled,
            roles=self.role_values,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_draft(cls, draft, now):
        """Create a new row from a validated UserDraft."""
        user_db = cls(
            username=draft.username,
            email=draft.email,
            first_name=draft.first_name,
            last_name=draft.last_name,
            enabled=draft.resolved_enabled(),
            created_at=now,
            updated_at=now,
        )
        user_db.set_roles(draft.resolved_roles())
        return user_db

    def apply_draft(self, draft, now) -> None:
        """Overwrite mutable fields from a validated UserDraft."""
        self.username = draft.username
        self.email = draft.email
        self.first_name = draft.first_name
        self.last_name = draft.last_name
        self.enabled = draft.resolved_enabled()
        self.set_roles(draft.resolved_roles())
        self.updated_at = now

    def __repr__(self) -> str:
        return f"<UserDB id={self.id} username={self.username} email={self.email}>"

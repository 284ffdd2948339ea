"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from cloudready.database.models import UserDB, UserRoleDB
from cloudready.models.page import PageRequest, Sort, SortDirection
from cloudready.models.user import Role, User, UserDraft

logger = logging.getLogger(__name__)

# Text columns matched by the free-text search
SEARCH_COLUMNS = (UserDB.username, UserDB.email, UserDB.first_name, UserDB.last_name)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, user_id: int) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()

    def get(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        user_db = self._row(user_id)
        return user_db.to_pydantic() if user_db else None

    def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        user_db = self.db.query(UserDB).filter(UserDB.username == username).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        return user_db.to_pydantic() if user_db else None

    def exists_by_username(self, username: str) -> bool:
        return self.db.query(UserDB.id).filter(UserDB.username == username).first() is not None

    def exists_by_email(self, email: str) -> bool:
        return self.db.query(UserDB.id).filter(UserDB.email == email).first() is not None

    def find_page(
        self,
        page_request: PageRequest,
        search: Optional[str] = None,
        roles: Optional[Iterable[Role]] = None,
        enabled_only: bool = False,
    ) -> Tuple[List[User], int]:
        """Get one page of users plus the total count of matching users.

        Args:
            page_request: Page index, size and optional ordering
            search: Case-insensitive substring matched against username, email,
                first name and last name. None or blank matches every user.
            roles: Keep users holding any of these roles
            enabled_only: Keep enabled users only

        Returns:
            Tuple of (users on the requested page, total matching users)
        """
        query = self.db.query(UserDB)

        if search is not None and search.strip():
            needle = search.lower()
            query = query.filter(
                or_(*[func.lower(column).contains(needle, autoescape=True) for column in SEARCH_COLUMNS])
            )

        role_values = sorted({Role(role).value for role in roles or ()})
        if role_values:
            query = query.filter(UserDB.role_rows.any(UserRoleDB.role.in_(role_values)))

        if enabled_only:
            query = query.filter(UserDB.enabled.is_(True))

        total = query.count()
        # Pages at or past the end are empty; OFFSET is never sent past the total
        if page_request.offset >= total:
            return [], total
        rows = (
            query.order_by(*self._ordering(page_request.sort))
            .offset(page_request.offset)
            .limit(page_request.size)
            .all()
        )
        return [user_db.to_pydantic() for user_db in rows], total

    @staticmethod
    def _ordering(sort: Optional[Sort]) -> list:
        """ORDER BY clauses; the primary key always breaks ties."""
        if sort is None or sort.field == "id":
            direction = sort.direction if sort else SortDirection.ASC
            return [UserDB.id.desc() if direction == SortDirection.DESC else UserDB.id.asc()]
        column = getattr(UserDB, sort.field)
        primary = column.desc() if sort.direction == SortDirection.DESC else column.asc()
        return [primary, UserDB.id.asc()]

    def create(self, draft: UserDraft, now: datetime) -> User:
        """Insert a new user row."""
        try:
            user_db = UserDB.from_draft(draft, now)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user_db.id}: {user_db.username}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {draft.username}: {type(e).__name__}: {str(e)}")
            raise

    def update(self, user_id: int, draft: UserDraft, now: datetime) -> Optional[User]:
        """Overwrite an existing user; returns None if there is no such user."""
        user_db = self._row(user_id)
        if not user_db:
            return None

        try:
            user_db.apply_draft(draft, now)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user_id}: {user_db.username}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: int) -> bool:
        """Delete a user by ID; returns False if there is no such user."""
        user_db = self._row(user_id)
        if not user_db:
            return False

        try:
            self.db.delete(user_db)
            self.db.commit()
            logger.debug(f"Deleted user {user_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {type(e).__name__}: {str(e)}")
            raise

"""User service: lookups, lifecycle and cache policy for users."""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import IntegrityError

from cloudready.database.user_repository import UserRepository
from cloudready.errors import ConflictError, UserNotFoundError
from cloudready.models.constants import CACHE_KEY_ID, CACHE_KEY_USERNAME
from cloudready.models.page import Page, PageRequest
from cloudready.models.user import Role, User, UserDraft, utcnow
from cloudready.services.cache import UserCache

logger = logging.getLogger(__name__)


def id_key(user_id: int) -> str:
    return f"{CACHE_KEY_ID}:{user_id}"


def username_key(username: str) -> str:
    return f"{CACHE_KEY_USERNAME}:{username}"


class UserService:
    """Service for user management.

    Cache policy:
    - `find_by_id` and `find_by_username` are served from the cache when possible.
    - `create` clears the whole cache.
    - `update` and `delete` evict every key that can refer to the user: its id,
      its previous username and (for update) its new username.
    """

    def __init__(
        self,
        repository: UserRepository,
        cache: UserCache,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.cache = cache
        self.clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_all(self, page_request: PageRequest) -> Page[User]:
        return self.find_filtered(page_request)

    def find_by_search(self, term: Optional[str], page_request: PageRequest) -> Page[User]:
        """Users whose username, email, first or last name contain *term* (case-insensitive).

        A None or blank term matches every user.
        """
        return self.find_filtered(page_request, search=term)

    def find_all_enabled(self, page_request: PageRequest) -> Page[User]:
        return self.find_filtered(page_request, enabled_only=True)

    def find_by_roles(self, roles: Iterable[Role], page_request: PageRequest) -> Page[User]:
        return self.find_filtered(page_request, roles=roles)

    def find_filtered(
        self,
        page_request: PageRequest,
        search: Optional[str] = None,
        roles: Optional[Iterable[Role]] = None,
        enabled_only: bool = False,
    ) -> Page[User]:
        users, total = self.repository.find_page(
            page_request, search=search, roles=roles, enabled_only=enabled_only
        )
        return Page[User].build(users, page_request, total)

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.cache.get_or_load(id_key(user_id), lambda: self.repository.get(user_id))

    def find_by_username(self, username: str) -> Optional[User]:
        return self.cache.get_or_load(
            username_key(username), lambda: self.repository.get_by_username(username)
        )

    def find_by_email(self, email: str) -> Optional[User]:
        return self.repository.get_by_email(email)

    def exists_by_username(self, username: str) -> bool:
        return self.repository.exists_by_username(username)

    def exists_by_email(self, email: str) -> bool:
        return self.repository.exists_by_email(email)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, draft: UserDraft) -> User:
        """Persist a new user.

        Raises:
            ConflictError: If the username or email is already taken
        """
        self._ensure_unique(draft)
        now = self.clock()
        try:
            user = self.repository.create(draft, now)
        except IntegrityError:
            raise ConflictError("User with the given username or email already exists")

        self.cache.clear()
        logger.info(f"Created user {user.id} ({user.username})")
        return user

    def update(self, user_id: int, draft: UserDraft) -> User:
        """Overwrite an existing user.

        Raises:
            UserNotFoundError: If no user has this id (nothing is changed)
            ConflictError: If the new username or email belongs to another user
        """
        current = self.repository.get(user_id)
        if current is None:
            raise UserNotFoundError.with_id(user_id)

        self._ensure_unique(draft, exclude_id=user_id)
        try:
            user = self.repository.update(user_id, draft, self.clock())
        except IntegrityError:
            raise ConflictError("User with the given username or email already exists")
        if user is None:
            raise UserNotFoundError.with_id(user_id)

        self.cache.delete(id_key(user_id), username_key(current.username), username_key(user.username))
        logger.info(f"Updated user {user_id} ({user.username})")
        return user

    def delete(self, user_id: int) -> None:
        """Remove a user.

        Raises:
            UserNotFoundError: If no user has this id
        """
        current = self.repository.get(user_id)
        if current is None or not self.repository.delete(user_id):
            raise UserNotFoundError.with_id(user_id)

        self.cache.delete(id_key(user_id), username_key(current.username))
        logger.info(f"Deleted user {user_id} ({current.username})")

    def _ensure_unique(self, draft: UserDraft, exclude_id: Optional[int] = None) -> None:
        existing = self.repository.get_by_username(draft.username)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(f"Username already exists: {draft.username}")
        existing = self.repository.get_by_email(draft.email)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(f"Email already exists: {draft.email}")

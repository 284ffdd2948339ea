"""Authorization predicates.

Each predicate takes the caller and the target and returns allow/deny; the
FastAPI dependencies in `cloudready.auth.dependencies` evaluate them before a
handler runs.
"""

from typing import Optional

from cloudready.auth.jwt import Principal
from cloudready.config import settings
from cloudready.models.user import Role

ADMIN_AUTHORITY = f"{settings.security.jwt.authority_prefix}{Role.ADMIN.value}"


def is_admin(principal: Optional[Principal]) -> bool:
    return principal is not None and principal.has_authority(ADMIN_AUTHORITY)


def is_self(principal: Optional[Principal], username: Optional[str]) -> bool:
    """True if the caller's identity equals *username*."""
    return principal is not None and username is not None and principal.username == username


def is_admin_or_self(principal: Optional[Principal], username: Optional[str]) -> bool:
    return is_admin(principal) or is_self(principal, username)

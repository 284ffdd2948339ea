"""FastAPI dependencies for authorization.

These run before request body validation and before the handler body, so a
denied request has no side effects.
"""

from fastapi import Depends, Path, Request
from sqlalchemy.orm import Session

from cloudready.auth.jwt import Principal
from cloudready.auth.permissions import is_admin, is_admin_or_self, is_self
from cloudready.database.database import get_db
from cloudready.database.user_repository import UserRepository
from cloudready.errors import ForbiddenError, UnauthenticatedError

ACCESS_DENIED = "Access is denied"


def get_current_principal(request: Request) -> Principal:
    """Get the caller authenticated by the security gate.

    Raises:
        UnauthenticatedError: If the request carries no verified principal
    """
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise UnauthenticatedError("Full authentication is required to access this resource")
    return principal


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not is_admin(principal):
        raise ForbiddenError(ACCESS_DENIED)
    return principal


def require_admin_or_owner(
    user_id: int = Path(..., description="User ID"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Principal:
    """Allow admins, or the caller whose username matches user *user_id*.

    The target is read straight from the repository, bypassing the lookup cache.
    A missing target denies non-admins.
    """
    if is_admin(principal):
        return principal
    target = UserRepository(db).get(user_id)
    if not is_self(principal, target.username if target else None):
        raise ForbiddenError(ACCESS_DENIED)
    return principal


def require_admin_or_username(
    username: str = Path(..., description="Username"),
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not is_admin_or_self(principal, username):
        raise ForbiddenError(ACCESS_DENIED)
    return principal

"""User resource endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from cloudready.api.pagination import page_request_params
from cloudready.auth.dependencies import (
    get_current_principal,
    require_admin,
    require_admin_or_owner,
    require_admin_or_username,
)
from cloudready.auth.jwt import Principal
from cloudready.config import settings
from cloudready.database.database import get_db
from cloudready.database.user_repository import UserRepository
from cloudready.errors import UserNotFoundError
from cloudready.models.error import ErrorResponse
from cloudready.models.page import Page, PageRequest
from cloudready.models.user import Role, User, UserDraft
from cloudready.services.cache import get_user_cache
from cloudready.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Access denied"},
    404: {"model": ErrorResponse, "description": "User not found"},
    409: {"model": ErrorResponse, "description": "User already exists"},
}


def _responses(*codes: int) -> dict:
    return {code: ERROR_RESPONSES[code] for code in codes}


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Build a UserService bound to the request's session and the shared cache."""
    return UserService(UserRepository(db), get_user_cache())


@router.get(
    "",
    response_model=Page[User],
    summary="Get all users",
    responses=_responses(400, 401, 403),
)
def list_users(
    principal: Principal = Depends(require_admin),
    page_request: PageRequest = Depends(page_request_params),
    search: Optional[str] = Query(None, description="Search term"),
    role: Optional[List[Role]] = Query(None, description="Only users holding any of these roles"),
    enabled_only: bool = Query(False, alias="enabledOnly", description="Only enabled users"),
    service: UserService = Depends(get_user_service),
):
    """Retrieve a paginated list of users, optionally filtered by a search term."""
    term = search.strip() if search is not None and search.strip() else None
    if term is None and not role and not enabled_only:
        return service.find_all(page_request)
    if not role and not enabled_only:
        return service.find_by_search(term, page_request)
    if term is None and not enabled_only:
        return service.find_by_roles(role, page_request)
    if term is None and not role:
        return service.find_all_enabled(page_request)
    return service.find_filtered(page_request, search=term, roles=role, enabled_only=enabled_only)


@router.get(
    "/exists/username/{username}",
    response_model=bool,
    summary="Check username availability",
    responses=_responses(401),
)
def check_username_exists(
    username: str = Path(..., description="Username to check"),
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
):
    return service.exists_by_username(username)


@router.get(
    "/exists/email/{email}",
    response_model=bool,
    summary="Check email availability",
    responses=_responses(401),
)
def check_email_exists(
    email: str = Path(..., description="Email to check"),
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
):
    return service.exists_by_email(email)


@router.get(
    "/username/{username}",
    response_model=User,
    summary="Get user by username",
    responses=_responses(401, 403, 404),
)
def get_user_by_username(
    username: str,
    principal: Principal = Depends(require_admin_or_username),
    service: UserService = Depends(get_user_service),
):
    user = service.find_by_username(username)
    if user is None:
        raise UserNotFoundError.with_username(username)
    return user


@router.get(
    "/{user_id}",
    response_model=User,
    summary="Get user by ID",
    responses=_responses(400, 401, 403, 404),
)
def get_user(
    user_id: int,
    principal: Principal = Depends(require_admin_or_owner),
    service: UserService = Depends(get_user_service),
):
    user = service.find_by_id(user_id)
    if user is None:
        raise UserNotFoundError.with_id(user_id)
    return user


@router.post(
    "",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    responses=_responses(400, 401, 403, 409),
)
def create_user(
    response: Response,
    principal: Principal = Depends(require_admin),
    draft: UserDraft = Body(...),
    service: UserService = Depends(get_user_service),
):
    user = service.create(draft)
    response.headers["Location"] = f"{settings.base_path}/users/{user.id}"
    return user


@router.put(
    "/{user_id}",
    response_model=User,
    summary="Update user",
    responses=_responses(400, 401, 403, 404, 409),
)
def update_user(
    user_id: int,
    principal: Principal = Depends(require_admin_or_owner),
    draft: UserDraft = Body(...),
    service: UserService = Depends(get_user_service),
):
    return service.update(user_id, draft)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    responses=_responses(400, 401, 403, 404),
)
def delete_user(
    user_id: int,
    principal: Principal = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    service.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

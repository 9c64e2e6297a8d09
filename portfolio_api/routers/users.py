from fastapi import APIRouter, Depends

from portfolio_api.dependencies import require_admin
from portfolio_api.errors import NotFound, ValidationError
from portfolio_api.models.user import UserEntry
from portfolio_api.schemas.users import (
    UserActiveUpdate,
    UserDetailResponse,
    UserListResponse,
)
from portfolio_api.services.users import to_public, user_store

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=UserListResponse)
def list_users() -> UserListResponse:
    return UserListResponse(users=[to_public(entry) for entry in user_store.list_users()])


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(user_id: int) -> UserDetailResponse:
    entry = user_store.get_user(user_id)
    if entry is None:
        raise NotFound("User not found")
    return UserDetailResponse(user=to_public(entry))


@router.patch("/{user_id}/active", response_model=UserDetailResponse)
def set_user_active(
    user_id: int,
    payload: UserActiveUpdate,
    admin: UserEntry = Depends(require_admin),
) -> UserDetailResponse:
    if user_id == admin.id and not payload.is_active:
        raise ValidationError("You cannot deactivate your own account")
    try:
        entry = user_store.set_active(user_id, payload.is_active)
    except ValueError as exc:
        raise NotFound(str(exc)) from exc
    return UserDetailResponse(user=to_public(entry))

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, status

from backend.dependencies import get_users
from backend.schemas import UserCreateRequest, UserUpdateRequest, envelope
from backend.services.user_store import User, UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["users"])

UserId = Annotated[int, Path(ge=1, description="Valid user ID is required")]


def _user_view(user: User) -> dict[str, Any]:
    """Serialise a user with camelCase keys, leaving out unset fields."""
    return user.model_dump(by_alias=True, mode="json", exclude_none=True)


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    users: UserStore = Depends(get_users),
) -> dict[str, Any]:
    """Return one page of users."""
    result = await users.paginate(page, limit)
    return envelope(
        {
            "users": [_user_view(u) for u in result.users],
            "pagination": result.model_dump(by_alias=True, exclude={"users"}),
        }
    )


@router.get("/{user_id}")
async def get_user(
    user_id: UserId, users: UserStore = Depends(get_users)
) -> dict[str, Any]:
    """Return one user by id."""
    user = await users.get(user_id)
    return envelope({"user": _user_view(user)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest, users: UserStore = Depends(get_users)
) -> dict[str, Any]:
    """Create a user with a unique e-mail."""
    user = await users.create(body.name, str(body.email))
    logger.info("Created new user %s", user.id)
    return envelope({"user": _user_view(user)})


@router.put("/{user_id}")
async def update_user(
    body: UserUpdateRequest,
    user_id: UserId,
    users: UserStore = Depends(get_users),
) -> dict[str, Any]:
    """Update the given fields of a user."""
    user = await users.update(
        user_id, name=body.name, email=str(body.email) if body.email else None
    )
    logger.info("Updated user %s", user.id)
    return envelope({"user": _user_view(user)})


@router.delete("/{user_id}")
async def delete_user(
    user_id: UserId, users: UserStore = Depends(get_users)
) -> dict[str, Any]:
    """Delete a user and return the removed record."""
    user = await users.delete(user_id)
    logger.info("Deleted user %s", user.id)
    return envelope({"user": _user_view(user)})

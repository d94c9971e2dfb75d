from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, status

from ..errors import ApiError, ConflictError
from ..models import UserEntity
from ..repositories import Repository, get_repository
from ..schemas import INT4_MAX, INT4_MIN, Envelope, UserCreate, UserOut, UserUpdate

router = APIRouter(tags=["users"])

USER_NOT_FOUND = "User not found"
EMAIL_EXISTS = "Email already exists"


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


async def _insert_user(repo: Repository, payload: UserCreate) -> UserEntity:
    try:
        return await repo.create_user(payload)
    except ConflictError as exc:
        raise ApiError(status.HTTP_409_CONFLICT, EMAIL_EXISTS) from exc


# PUBLIC_INTERFACE
@router.post(
    "/users",
    response_model=Envelope[UserOut],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    responses={
        201: {"description": "User created"},
        400: {"description": "Validation error"},
        409: {"description": "Email already exists"},
    },
)
async def create_user(payload: UserCreate, repo: Repository = Depends(_get_repo)) -> Envelope[UserOut]:
    """
    Create a user and return the stored row.
    """
    created = await _insert_user(repo, payload)
    return Envelope[UserOut](success=True, message="Data Inserted Successfully", data=UserOut(**created))


# PUBLIC_INTERFACE
@router.post(
    "/new-user",
    response_model=Envelope[UserOut],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create User (name + email)",
    responses={
        201: {"description": "User created"},
        400: {"description": "Validation error"},
        409: {"description": "Email already exists"},
    },
)
async def create_new_user(payload: UserCreate, repo: Repository = Depends(_get_repo)) -> Envelope[UserOut]:
    """
    Same as POST /users, under the route older clients call.
    """
    created = await _insert_user(repo, payload)
    return Envelope[UserOut](success=True, message="New User Created Successfully", data=UserOut(**created))


# PUBLIC_INTERFACE
@router.get(
    "/users",
    response_model=Envelope[List[UserOut]],
    response_model_exclude_unset=True,
    summary="List Users",
    description="Return every user. The list is unfiltered and unpaginated; order is not guaranteed.",
)
async def list_users(repo: Repository = Depends(_get_repo)) -> Envelope[List[UserOut]]:
    users = await repo.list_users()
    return Envelope[List[UserOut]](
        success=True,
        message="Users retrieved successfully",
        data=[UserOut(**u) for u in users],
    )


# PUBLIC_INTERFACE
@router.get(
    "/users/{user_id}",
    response_model=Envelope[UserOut],
    response_model_exclude_unset=True,
    summary="Get User",
    responses={404: {"description": USER_NOT_FOUND}},
)
async def get_user(
    user_id: int = Path(..., ge=INT4_MIN, le=INT4_MAX, description="Identifier of the user"),
    repo: Repository = Depends(_get_repo),
) -> Envelope[UserOut]:
    """
    Retrieve a single user by its ID.
    """
    user = await repo.get_user(user_id)
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND)
    return Envelope[UserOut](success=True, message="User fetched successfully", data=UserOut(**user))


# PUBLIC_INTERFACE
@router.put(
    "/users/{user_id}",
    response_model=Envelope[UserOut],
    response_model_exclude_unset=True,
    summary="Update User",
    description="Overwrite name and email of a user. Both fields are required; partial updates are not supported.",
    responses={
        404: {"description": USER_NOT_FOUND},
        409: {"description": EMAIL_EXISTS},
    },
)
async def update_user(
    payload: UserUpdate,
    user_id: int = Path(..., ge=INT4_MIN, le=INT4_MAX, description="Identifier of the user"),
    repo: Repository = Depends(_get_repo),
) -> Envelope[UserOut]:
    try:
        updated = await repo.update_user(user_id, payload)
    except ConflictError as exc:
        raise ApiError(status.HTTP_409_CONFLICT, EMAIL_EXISTS) from exc
    if not updated:
        raise ApiError(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND)
    return Envelope[UserOut](success=True, message="User updated successfully", data=UserOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "/users/{user_id}",
    response_model=Envelope,
    response_model_exclude_unset=True,
    summary="Delete User",
    description="Delete a user. Todos owned by the user are deleted with it.",
    responses={404: {"description": USER_NOT_FOUND}},
)
async def delete_user(
    user_id: int = Path(..., ge=INT4_MIN, le=INT4_MAX, description="Identifier of the user"),
    repo: Repository = Depends(_get_repo),
) -> Envelope:
    ok = await repo.delete_user(user_id)
    if not ok:
        raise ApiError(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND)
    return Envelope(success=True, message="User deleted successfully", data=None)

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, status

from ..errors import ApiError, MissingReferenceError
from ..repositories import Repository, get_repository
from ..schemas import INT4_MAX, INT4_MIN, Envelope, TodoCreate, TodoOut

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

TODO_NOT_FOUND = "Todo not found"
USER_NOT_FOUND = "User not found"


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=Envelope[TodoOut],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a todo. `user_id`, when given, must reference an existing user.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
        404: {"description": USER_NOT_FOUND},
    },
)
async def create_todo(payload: TodoCreate, repo: Repository = Depends(_get_repo)) -> Envelope[TodoOut]:
    """
    Create a new Todo.
    """
    try:
        created = await repo.create_todo(payload)
    except MissingReferenceError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND) from exc
    return Envelope[TodoOut](success=True, message="Todo created successfully", data=TodoOut(**created))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=Envelope[List[TodoOut]],
    response_model_exclude_unset=True,
    summary="List Todos",
    description="Return every todo, unfiltered and unpaginated. Responds 404 when there are none.",
    responses={
        200: {"description": "List retrieved successfully"},
        404: {"description": "No todos found"},
    },
)
async def list_todos(repo: Repository = Depends(_get_repo)) -> Envelope[List[TodoOut]]:
    todos = await repo.list_todos()
    if not todos:
        raise ApiError(status.HTTP_404_NOT_FOUND, "No todos found")
    return Envelope[List[TodoOut]](
        success=True,
        message="Todos retrieved successfully",
        data=[TodoOut(**t) for t in todos],
    )


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=Envelope[TodoOut],
    response_model_exclude_unset=True,
    summary="Get Todo",
    responses={404: {"description": TODO_NOT_FOUND}},
)
async def get_todo(
    todo_id: int = Path(..., ge=INT4_MIN, le=INT4_MAX, description="Identifier of the todo"),
    repo: Repository = Depends(_get_repo),
) -> Envelope[TodoOut]:
    """
    Retrieve a single Todo item by its ID.
    """
    item = await repo.get_todo(todo_id)
    if not item:
        raise ApiError(status.HTTP_404_NOT_FOUND, TODO_NOT_FOUND)
    return Envelope[TodoOut](success=True, message="Todo fetched successfully", data=TodoOut(**item))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=Envelope[TodoOut],
    response_model_exclude_unset=True,
    summary="Replace Todo",
    description=(
        "Replace an existing Todo item. Any fields omitted will be set to their default/null "
        "equivalent as per the schema."
    ),
    responses={
        404: {"description": "Todo or referenced user not found"},
    },
)
async def put_todo(
    payload: TodoCreate,
    todo_id: int = Path(..., ge=INT4_MIN, le=INT4_MAX, description="Identifier of the todo"),
    repo: Repository = Depends(_get_repo),
) -> Envelope[TodoOut]:
    try:
        updated = await repo.update_todo(todo_id, payload)
    except MissingReferenceError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND) from exc
    if not updated:
        raise ApiError(status.HTTP_404_NOT_FOUND, TODO_NOT_FOUND)
    return Envelope[TodoOut](success=True, message="Todo updated successfully", data=TodoOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=Envelope,
    response_model_exclude_unset=True,
    summary="Delete Todo",
    responses={404: {"description": TODO_NOT_FOUND}},
)
async def delete_todo(
    todo_id: int = Path(..., ge=INT4_MIN, le=INT4_MAX, description="Identifier of the todo"),
    repo: Repository = Depends(_get_repo),
) -> Envelope:
    """
    Delete a Todo. Returns 200 with `data: null` on success, 404 if not found.
    """
    ok = await repo.delete_todo(todo_id)
    if not ok:
        raise ApiError(status.HTTP_404_NOT_FOUND, TODO_NOT_FOUND)
    return Envelope(success=True, message="Todo deleted successfully", data=None)

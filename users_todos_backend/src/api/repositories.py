from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from threading import RLock
from typing import Dict, List, Optional

from fastapi import Request

from .errors import ConflictError, MissingReferenceError
from .logger import get_logger
from .models import TodoEntity, UserEntity
from .schemas import TodoCreate, UserCreate, UserUpdate
from .settings import Settings

logger = get_logger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for user/todo storage backends.

    Write methods raise `ConflictError` when a unique constraint rejects the row and
    `MissingReferenceError` when a foreign key does; any other backend failure is a
    `StorageError`.
    """

    name: str = "abstract"

    async def initialize(self) -> None:
        """Prepare the backend (connect, create tables). Safe to call repeatedly."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def create_user(self, data: UserCreate) -> UserEntity:
        """Insert a user and return the stored row."""

    @abstractmethod
    async def list_users(self) -> List[UserEntity]:
        """Return every user row, in no particular order."""

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    async def update_user(self, user_id: int, data: UserUpdate) -> Optional[UserEntity]:
        """Overwrite name and email of a user. Return the updated row or None if not found."""

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool:
        """Delete a user and its todos. Return True if deleted, False if not found."""

    @abstractmethod
    async def create_todo(self, data: TodoCreate) -> TodoEntity:
        """Insert a todo and return the stored row."""

    @abstractmethod
    async def list_todos(self) -> List[TodoEntity]:
        """Return every todo row, in no particular order."""

    @abstractmethod
    async def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a todo by id, or None if not found."""

    @abstractmethod
    async def update_todo(self, todo_id: int, data: TodoCreate) -> Optional[TodoEntity]:
        """Replace every mutable field of a todo. Return the updated row or None if not found."""

    @abstractmethod
    async def delete_todo(self, todo_id: int) -> bool:
        """Delete a todo. Return True if deleted, False if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository for tests and for running without a database.

    Emulates the constraints the PostgreSQL schema enforces: unique emails, the
    todos -> users foreign key, and cascading deletes.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[int, UserEntity] = {}
        self._todos: Dict[int, TodoEntity] = {}
        self._next_user_id = 1
        self._next_todo_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _check_email(self, email: str, exclude_id: Optional[int] = None) -> None:
        for user in self._users.values():
            if user["email"] == email and user["id"] != exclude_id:
                raise ConflictError(
                    'duplicate key value violates unique constraint "users_email_key"',
                    code="23505",
                )

    def _check_user_ref(self, user_id: Optional[int]) -> None:
        if user_id is not None and user_id not in self._users:
            raise MissingReferenceError(
                'insert or update on table "todos" violates foreign key constraint "todos_user_id_fkey"',
                code="23503",
            )

    async def create_user(self, data: UserCreate) -> UserEntity:
        with self._lock:
            self._check_email(data.email)
            now = self._now()
            entity: UserEntity = {
                "id": self._next_user_id,
                "name": data.name,
                "email": data.email,
                "age": data.age,
                "phone": data.phone,
                "address": data.address,
                "created_at": now,
                "updated_at": now,
            }
            self._next_user_id += 1
            self._users[entity["id"]] = entity
            return entity.copy()

    async def list_users(self) -> List[UserEntity]:
        with self._lock:
            return [u.copy() for u in self._users.values()]

    async def get_user(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            item = self._users.get(user_id)
            return None if item is None else item.copy()

    async def update_user(self, user_id: int, data: UserUpdate) -> Optional[UserEntity]:
        with self._lock:
            existing = self._users.get(user_id)
            if existing is None:
                return None
            self._check_email(data.email, exclude_id=user_id)

            updated = existing.copy()
            updated["name"] = data.name
            updated["email"] = data.email
            updated["updated_at"] = self._now()
            self._users[user_id] = updated
            return updated.copy()

    async def delete_user(self, user_id: int) -> bool:
        with self._lock:
            if self._users.pop(user_id, None) is None:
                return False
            # ON DELETE CASCADE
            for todo_id in [t["id"] for t in self._todos.values() if t["user_id"] == user_id]:
                del self._todos[todo_id]
            return True

    async def create_todo(self, data: TodoCreate) -> TodoEntity:
        with self._lock:
            self._check_user_ref(data.user_id)
            now = self._now()
            entity: TodoEntity = {
                "id": self._next_todo_id,
                "user_id": data.user_id,
                "title": data.title,
                "description": data.description,
                "completed": data.completed,
                "due_date": data.due_date,
                "created_at": now,
                "updated_at": now,
            }
            self._next_todo_id += 1
            self._todos[entity["id"]] = entity
            return entity.copy()

    async def list_todos(self) -> List[TodoEntity]:
        with self._lock:
            return [t.copy() for t in self._todos.values()]

    async def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._todos.get(todo_id)
            return None if item is None else item.copy()

    async def update_todo(self, todo_id: int, data: TodoCreate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None
            self._check_user_ref(data.user_id)

            updated = existing.copy()
            updated["user_id"] = data.user_id
            updated["title"] = data.title
            updated["description"] = data.description
            updated["completed"] = data.completed
            updated["due_date"] = data.due_date
            updated["updated_at"] = self._now()
            self._todos[todo_id] = updated
            return updated.copy()

    async def delete_todo(self, todo_id: int) -> bool:
        with self._lock:
            return self._todos.pop(todo_id, None) is not None


# PUBLIC_INTERFACE
def build_repository(settings: Settings) -> Repository:
    """
    Factory returning the configured repository based on settings.
    - postgres: PostgresRepository backed by an asyncpg pool (requires a DSN)
    - memory: InMemoryRepository
    The pool is not opened here; `Repository.initialize()` does that at startup.
    """
    if settings.persistence_backend == "postgres":
        if not settings.database_url:
            raise RuntimeError("PERSISTENCE_BACKEND=postgres requires CONNECTION_STR or DATABASE_URL")
        from .db import PostgresRepository

        return PostgresRepository(
            settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )
    logger.warning("Using the in-memory repository; data is not persisted.")
    return InMemoryRepository()


# PUBLIC_INTERFACE
def get_repository(request: Request) -> Repository:
    """FastAPI dependency returning the repository created for the running application."""
    return request.app.state.repository

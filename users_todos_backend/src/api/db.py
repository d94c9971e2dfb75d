from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Type

import asyncpg

from .errors import ConflictError, MissingReferenceError, StorageError
from .logger import get_logger
from .models import TodoEntity, UserEntity
from .repositories import Repository
from .schemas import TodoCreate, UserCreate, UserUpdate

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id          SERIAL PRIMARY KEY,
    name        VARCHAR(100) NOT NULL,
    email       VARCHAR(100) NOT NULL UNIQUE,
    age         INT,
    phone       VARCHAR(15),
    address     TEXT,
    created_at  TIMESTAMP DEFAULT NOW(),
    updated_at  TIMESTAMP DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS todos (
    id          SERIAL PRIMARY KEY,
    user_id     INT REFERENCES users(id) ON DELETE CASCADE,
    title       VARCHAR(200) NOT NULL,
    description TEXT,
    completed   BOOLEAN DEFAULT FALSE,
    due_date    DATE,
    created_at  TIMESTAMP DEFAULT NOW(),
    updated_at  TIMESTAMP DEFAULT NOW()
);
"""

# SQLSTATE class 23 (integrity constraint violation) codes with a dedicated kind
_SQLSTATE_KINDS: Dict[str, Type[StorageError]] = {
    "23505": ConflictError,  # unique_violation
    "23503": MissingReferenceError,  # foreign_key_violation
}


# PUBLIC_INTERFACE
def classify_error(exc: BaseException) -> StorageError:
    """
    Translate an asyncpg (or connection-level) exception into a StorageError kind.

    PostgreSQL server errors are matched on their SQLSTATE code; anything else
    becomes a plain StorageError carrying the original message.
    """
    if isinstance(exc, StorageError):
        return exc

    code = getattr(exc, "sqlstate", None)
    detail: Any = None
    if isinstance(exc, asyncpg.PostgresError):
        detail = exc.as_dict()
    kind = _SQLSTATE_KINDS.get(code or "", StorageError)
    return kind(str(exc) or type(exc).__name__, code=code, detail=detail)


class PostgresRepository(Repository):
    """
    Repository backed by a shared asyncpg connection pool.

    Each operation borrows one connection for a single statement. When all
    `max_size` connections are busy, `acquire()` waits for one to be released.
    """

    name = "postgres"

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 10) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(self) -> None:
        """Open the pool and create both tables if they do not exist."""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self._dsn, min_size=self._min_size, max_size=self._max_size
            )
            logger.info(
                "Database connection pool initialized (min=%d, max=%d).",
                self._min_size,
                self._max_size,
            )
        async with self._pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("Database initialized successfully!")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection pool closed.")

    @asynccontextmanager
    async def _conn(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise StorageError("Database pool not initialized. Call initialize() first.")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            raise classify_error(exc) from exc

    async def _fetchrow(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        async with self._conn() as conn:
            row = await conn.fetchrow(query, *args)
        return dict(row) if row is not None else None

    async def _fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        async with self._conn() as conn:
            rows = await conn.fetch(query, *args)
        return [dict(r) for r in rows]

    async def create_user(self, data: UserCreate) -> UserEntity:
        row = await self._fetchrow(
            """
            INSERT INTO users (name, email, age, phone, address)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            data.name,
            data.email,
            data.age,
            data.phone,
            data.address,
        )
        assert row is not None
        return row  # type: ignore[return-value]

    async def list_users(self) -> List[UserEntity]:
        return await self._fetch("SELECT * FROM users")  # type: ignore[return-value]

    async def get_user(self, user_id: int) -> Optional[UserEntity]:
        return await self._fetchrow("SELECT * FROM users WHERE id = $1", user_id)  # type: ignore[return-value]

    async def update_user(self, user_id: int, data: UserUpdate) -> Optional[UserEntity]:
        return await self._fetchrow(  # type: ignore[return-value]
            """
            UPDATE users SET name = $1, email = $2, updated_at = NOW()
            WHERE id = $3
            RETURNING *
            """,
            data.name,
            data.email,
            user_id,
        )

    async def delete_user(self, user_id: int) -> bool:
        row = await self._fetchrow("DELETE FROM users WHERE id = $1 RETURNING id", user_id)
        return row is not None

    async def create_todo(self, data: TodoCreate) -> TodoEntity:
        row = await self._fetchrow(
            """
            INSERT INTO todos (user_id, title, description, completed, due_date)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            data.user_id,
            data.title,
            data.description,
            data.completed,
            data.due_date,
        )
        assert row is not None
        return row  # type: ignore[return-value]

    async def list_todos(self) -> List[TodoEntity]:
        return await self._fetch("SELECT * FROM todos")  # type: ignore[return-value]

    async def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        return await self._fetchrow("SELECT * FROM todos WHERE id = $1", todo_id)  # type: ignore[return-value]

    async def update_todo(self, todo_id: int, data: TodoCreate) -> Optional[TodoEntity]:
        return await self._fetchrow(  # type: ignore[return-value]
            """
            UPDATE todos
            SET user_id = $1, title = $2, description = $3, completed = $4,
                due_date = $5, updated_at = NOW()
            WHERE id = $6
            RETURNING *
            """,
            data.user_id,
            data.title,
            data.description,
            data.completed,
            data.due_date,
            todo_id,
        )

    async def delete_todo(self, todo_id: int) -> bool:
        row = await self._fetchrow("DELETE FROM todos WHERE id = $1 RETURNING id", todo_id)
        return row is not None

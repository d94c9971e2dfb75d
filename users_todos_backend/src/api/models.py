from __future__ import annotations

from datetime import date, datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A single row of the `users` table.

    Fields:
    - id: Auto-incrementing integer identifier
    - name: Display name (required)
    - email: Globally unique email address (required)
    - age, phone, address: Optional profile fields
    - created_at / updated_at: Server-assigned timestamps
    """

    id: int
    name: str
    email: str
    age: Optional[int]
    phone: Optional[str]
    address: Optional[str]
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A single row of the `todos` table.

    Fields:
    - id: Auto-incrementing integer identifier
    - user_id: Owning user; rows are removed when the user is deleted
    - title: Short title (1..200 chars)
    - description: Optional detailed description
    - completed: Boolean completion flag (defaults to false)
    - due_date: Optional due date
    - created_at / updated_at: Server-assigned timestamps
    """

    id: int
    user_id: Optional[int]
    title: str
    description: Optional[str]
    completed: bool
    due_date: Optional[date]
    created_at: datetime
    updated_at: datetime

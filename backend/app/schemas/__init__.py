"""Pydantic schemas for API validation"""

from app.schemas.user import UserResponse, CurrentUserResponse, RefreshResponse
from app.schemas.todo import (
    Priority,
    TodoCreate,
    TodoUpdate,
    TodoCreateRequest,
    TodoUpdateRequest,
    TodoResponse,
    TodoEnvelope,
    TodoListResponse,
)
from app.schemas.response import MessageResponse, ErrorResponse, HealthResponse

__all__ = [
    "UserResponse", "CurrentUserResponse", "RefreshResponse",
    "Priority", "TodoCreate", "TodoUpdate", "TodoCreateRequest", "TodoUpdateRequest",
    "TodoResponse", "TodoEnvelope", "TodoListResponse",
    "MessageResponse", "ErrorResponse", "HealthResponse",
]

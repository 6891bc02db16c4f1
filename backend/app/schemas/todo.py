"""Todo schemas"""

import re
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.todo import PRIORITY_NAMES

_DEADLINE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Priority(str, Enum):
    """Todo priority, ordered high to low"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Name can't be blank")
    return value


def _check_deadline(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not _DEADLINE_PATTERN.match(value):
        raise ValueError("Deadline must be in YYYY-MM-DD format")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError("Deadline is not a valid date")
    return value


class TodoCreate(BaseModel):
    """Create todo schema"""
    name: str = Field(..., min_length=1, max_length=255)
    priority: Priority = Priority.MEDIUM
    deadline: Optional[str] = None
    completed: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v):
        return _check_deadline(v)


class TodoUpdate(BaseModel):
    """Partial todo update; omitted fields are left untouched"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    priority: Optional[Priority] = None
    deadline: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v):
        return _check_deadline(v)


class TodoCreateRequest(BaseModel):
    """Create request body, ``{"todo": {...}}``"""
    todo: TodoCreate


class TodoUpdateRequest(BaseModel):
    """Update request body, ``{"todo": {...}}``"""
    todo: TodoUpdate


class TodoResponse(BaseModel):
    """Todo response schema"""
    id: int
    user_id: int
    name: str
    priority: Priority
    deadline: Optional[str]
    completed: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True

    @field_validator("priority", mode="before")
    @classmethod
    def priority_from_storage(cls, v):
        """Stored priorities are integers"""
        if isinstance(v, int):
            return PRIORITY_NAMES[v]
        return v


class TodoEnvelope(BaseModel):
    todo: TodoResponse


class TodoListResponse(BaseModel):
    todos: List[TodoResponse]

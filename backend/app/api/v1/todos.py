"""Todo routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from app.core.database import get_db
from app.schemas.todo import (
    Priority,
    TodoCreateRequest,
    TodoUpdateRequest,
    TodoResponse,
    TodoEnvelope,
    TodoListResponse,
)
from app.schemas.response import ErrorResponse, MessageResponse
from app.services.todo_service import todo_service
from app.api.deps import get_current_user
from app.models.user import User

router = APIRouter(responses={401: {"model": ErrorResponse}})


@router.get("", response_model=TodoListResponse)
def list_todos(
    priority: Optional[Priority] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List the current user's todos

    Args:
        priority: Optional priority filter
        current_user: Current authenticated user
        db: Database session

    Returns:
        Todos sorted by priority, then deadline
    """
    todos = todo_service.list_todos(db, current_user.id, priority)
    return TodoListResponse(todos=[TodoResponse.model_validate(todo) for todo in todos])


@router.post("", response_model=TodoEnvelope, status_code=status.HTTP_201_CREATED)
def create_todo(
    body: TodoCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a todo for the current user"""
    todo = todo_service.create_todo(db, current_user.id, body.todo)
    return TodoEnvelope(todo=TodoResponse.model_validate(todo))


@router.patch("/{todo_id}", response_model=TodoEnvelope)
@router.put("/{todo_id}", response_model=TodoEnvelope)
def update_todo(
    todo_id: int,
    body: TodoUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update a todo

    A todo belonging to someone else is reported as not found.
    """
    todo = todo_service.update_todo(db, current_user.id, todo_id, body.todo)
    return TodoEnvelope(todo=TodoResponse.model_validate(todo))


@router.delete("/{todo_id}", response_model=MessageResponse)
def delete_todo(
    todo_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a todo"""
    todo_service.delete_todo(db, current_user.id, todo_id)
    return MessageResponse(message="Todo deleted successfully")

"""Todo service - CRUD scoped to the owning user"""

from sqlalchemy.orm import Session
from typing import List, Optional
from app.models.todo import Todo, PRIORITY_VALUES
from app.schemas.todo import Priority, TodoCreate, TodoUpdate
from app.core.exceptions import ResourceNotFoundError
import logging

logger = logging.getLogger(__name__)


class TodoService:
    """Service for managing a user's todos"""

    @staticmethod
    def list_todos(db: Session, user_id: int, priority: Optional[Priority] = None) -> List[Todo]:
        """
        List a user's todos

        Sorted by priority (high first), then deadline ascending with undated
        todos last, then newest first.

        Args:
            db: Database session
            user_id: Owner
            priority: Optional priority filter

        Returns:
            List of todos
        """
        query = db.query(Todo).filter(Todo.user_id == user_id)
        if priority is not None:
            query = query.filter(Todo.priority == PRIORITY_VALUES[Priority(priority).value])
        return query.order_by(
            Todo.priority.asc(),
            Todo.deadline.is_(None).asc(),
            Todo.deadline.asc(),
            Todo.created_at.desc(),
            Todo.id.desc(),
        ).all()

    @staticmethod
    def get_todo(db: Session, user_id: int, todo_id: int) -> Todo:
        """
        Get a todo owned by the user

        Raises:
            ResourceNotFoundError: Missing, or owned by someone else
        """
        todo = db.query(Todo).filter(Todo.id == todo_id, Todo.user_id == user_id).first()
        if not todo:
            raise ResourceNotFoundError("Todo")
        return todo

    @staticmethod
    def create_todo(db: Session, user_id: int, data: TodoCreate) -> Todo:
        todo = Todo(
            user_id=user_id,
            name=data.name,
            priority=PRIORITY_VALUES[data.priority.value],
            deadline=data.deadline,
            completed=data.completed,
        )
        db.add(todo)
        db.commit()
        db.refresh(todo)

        logger.info(f"Created todo {todo.id} for user {user_id}")
        return todo

    @staticmethod
    def update_todo(db: Session, user_id: int, todo_id: int, data: TodoUpdate) -> Todo:
        """Apply the fields present in ``data``"""
        todo = TodoService.get_todo(db, user_id, todo_id)

        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is not None:
            todo.name = changes["name"]
        if "priority" in changes and changes["priority"] is not None:
            todo.priority = PRIORITY_VALUES[Priority(changes["priority"]).value]
        if "deadline" in changes:
            todo.deadline = changes["deadline"]
        if "completed" in changes and changes["completed"] is not None:
            todo.completed = changes["completed"]

        db.commit()
        db.refresh(todo)

        logger.info(f"Updated todo {todo.id} for user {user_id}")
        return todo

    @staticmethod
    def delete_todo(db: Session, user_id: int, todo_id: int) -> None:
        todo = TodoService.get_todo(db, user_id, todo_id)
        db.delete(todo)
        db.commit()

        logger.info(f"Deleted todo {todo_id} for user {user_id}")


# Singleton instance
todo_service = TodoService()

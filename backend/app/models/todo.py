"""Todo model"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


# Stored priority values; lower sorts first.
PRIORITY_VALUES = {"high": 0, "medium": 1, "low": 2}
PRIORITY_NAMES = {value: name for name, value in PRIORITY_VALUES.items()}


class Todo(Base):
    """Todo item owned by a single user"""

    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    priority = Column(Integer, default=PRIORITY_VALUES["medium"], nullable=False)
    deadline = Column(String(10), nullable=True)  # YYYY-MM-DD
    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="todos")

    __table_args__ = (
        Index("idx_todos_user", "user_id"),
        Index("idx_todos_user_priority_deadline", "user_id", "priority", "deadline"),
        Index("idx_todos_user_created_at", "user_id", "created_at"),
        CheckConstraint("priority IN (0, 1, 2)", name="chk_priority"),
    )

    def __repr__(self):
        return f"<Todo(id={self.id}, user_id={self.user_id}, name='{self.name}', priority={self.priority})>"

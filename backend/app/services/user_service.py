"""User service - lookups against the user store"""

from sqlalchemy.orm import Session
from typing import Optional
from app.models.user import User


class UserService:
    """Read access to user records"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_subject(db: Session, subject: str) -> Optional[User]:
        """
        Get user named by a token subject

        Args:
            db: Database session
            subject: ``sub`` claim, the user id as a string

        Returns:
            User or None if the subject is not an id or no such user exists
        """
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            return None
        return UserService.get_user_by_id(db, user_id)

    @staticmethod
    def get_user_by_google_id(db: Session, google_id: str) -> Optional[User]:
        """Get user by Google account id"""
        return db.query(User).filter(User.google_id == google_id).first()


# Singleton instance
user_service = UserService()

"""Identity linking - maps a Google identity onto a local user"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.user import User
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")


@dataclass(frozen=True)
class OAuthIdentity:
    """Identity assertion from the provider"""
    provider_id: str
    email: str
    name: str


@dataclass(frozen=True)
class LinkResult:
    """Outcome of linking: a persisted user, or the reason there is none"""
    user: Optional[User] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user is not None


class IdentityLinker:
    """Find-or-create users from provider identities"""

    @staticmethod
    def _invalid_fields(google_id: str, email: str, name: str) -> Optional[str]:
        if not google_id or not google_id.strip():
            return "google_id is blank"
        if not email or not email.strip():
            return "email is blank"
        if not _EMAIL_PATTERN.match(email.strip()):
            return "email is invalid"
        if not name or not name.strip():
            return "name is blank"
        return None

    @staticmethod
    def link(db: Session, google_id: str, email: str, name: str) -> LinkResult:
        """
        Resolve the user for a Google account, creating it on first login

        An existing user gets the asserted email and name. Persistence
        failures, including losing a unique-constraint race against a
        concurrent first login, are rolled back and reported in the result.

        Args:
            db: Database session
            google_id: Provider account id
            email: Asserted email
            name: Asserted display name

        Returns:
            LinkResult
        """
        invalid = IdentityLinker._invalid_fields(google_id, email, name)
        if invalid:
            logger.error("Identity link rejected for google_id=%r: %s", google_id, invalid)
            return LinkResult(error=invalid)

        email = email.strip()
        name = name.strip()
        try:
            user = user_service.get_user_by_google_id(db, google_id)
            if user:
                user.email = email
                user.name = name
            else:
                user = User(google_id=google_id, email=email, name=name)
                db.add(user)
            db.commit()
            db.refresh(user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Identity link failed for google_id={google_id}: {e}")
            return LinkResult(error="persistence failed")

        logger.info(f"Linked google_id={google_id} to user {user.id}")
        return LinkResult(user=user)

    def link_identity(self, db: Session, identity: OAuthIdentity) -> LinkResult:
        return self.link(db, identity.provider_id, identity.email, identity.name)


identity_linker = IdentityLinker()

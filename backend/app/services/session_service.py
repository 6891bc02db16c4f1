"""Session issuance - login completion and refresh-token rotation"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError, OAuthLoginError
from app.core.security import TokenKind, create_access_token, create_refresh_token, verify_token
from app.models.user import User
from app.services.identity_service import OAuthIdentity, identity_linker
from app.services.user_service import user_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTokens:
    """Freshly minted token pair and the user it belongs to"""
    access_token: str
    refresh_token: str
    user: User


class SessionService:
    """Mint and rotate access/refresh token pairs"""

    @staticmethod
    def issue_token_pair(user: User) -> SessionTokens:
        subject = str(user.id)
        return SessionTokens(
            access_token=create_access_token(subject),
            refresh_token=create_refresh_token(subject),
            user=user,
        )

    @staticmethod
    def complete_login(db: Session, identity: Optional[OAuthIdentity]) -> SessionTokens:
        """
        Finish an OAuth login

        Args:
            db: Database session
            identity: Provider assertion, None if the provider returned nothing usable

        Returns:
            SessionTokens for the linked user

        Raises:
            OAuthLoginError: authentication_failed, user_creation_failed or server_error
        """
        if identity is None:
            raise OAuthLoginError(OAuthLoginError.AUTHENTICATION_FAILED)

        try:
            result = identity_linker.link_identity(db, identity)
            if not result.ok:
                raise OAuthLoginError(OAuthLoginError.USER_CREATION_FAILED)
            tokens = SessionService.issue_token_pair(result.user)
        except OAuthLoginError:
            raise
        except Exception as e:
            logger.exception(f"OAuth login failed: {e}")
            raise OAuthLoginError(OAuthLoginError.SERVER_ERROR)

        logger.info(f"User {tokens.user.id} signed in")
        return tokens

    @staticmethod
    def refresh_session(db: Session, refresh_token: Optional[str]) -> SessionTokens:
        """
        Exchange a refresh token for a new access token and a new refresh token

        The presented refresh token is superseded but stays valid until its
        own expiry.

        Raises:
            AuthenticationError: Always a 401, with the reason as message
        """
        if not refresh_token:
            raise AuthenticationError("Refresh token not found")

        try:
            claims = verify_token(refresh_token)
            if claims is None or claims.kind != TokenKind.REFRESH:
                raise AuthenticationError("Invalid refresh token")

            user = user_service.get_user_by_subject(db, claims.subject)
            if user is None:
                raise AuthenticationError("User not found")

            tokens = SessionService.issue_token_pair(user)
        except AuthenticationError as e:
            logger.warning(f"Token refresh rejected: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Token refresh error: {e}")
            raise AuthenticationError("Token refresh failed")

        return tokens


session_service = SessionService()

"""API dependencies - request authorization"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.core.database import get_db
from app.core.security import TokenKind, verify_token
from app.core.exceptions import AuthenticationError
from app.models.user import User
from app.services.user_service import user_service

_BEARER_PREFIX = "Bearer "

# Sentinel distinguishing "not yet resolved" from "resolved to nobody".
_UNRESOLVED = object()


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header

    Args:
        header: Raw header value

    Returns:
        Token, or None if the header is absent or not in that exact form
    """
    if not header or not header.startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX):]
    if not token or " " in token:
        return None
    return token


def authorize(db: Session, header: Optional[str]) -> Optional[User]:
    """
    Resolve the user behind an access-token bearer header

    Refresh tokens verify under the same key, so the kind is checked here.

    Returns:
        User, or None for any missing, invalid, expired, wrong-kind or orphaned token
    """
    token = extract_bearer_token(header)
    if token is None:
        return None

    claims = verify_token(token)
    if claims is None or claims.kind != TokenKind.ACCESS:
        return None

    return user_service.get_user_by_subject(db, claims.subject)


def _resolve_request_user(request: Request, db: Session) -> Optional[User]:
    """Authorize once per request; later dependencies reuse the result"""
    cached = getattr(request.state, "current_user", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached
    user = authorize(db, request.headers.get("Authorization"))
    request.state.current_user = user
    return user


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from the access token

    Raises:
        AuthenticationError: Uniform 401 whatever check failed
    """
    user = _resolve_request_user(request, db)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user


def get_optional_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise"""
    return _resolve_request_user(request, db)

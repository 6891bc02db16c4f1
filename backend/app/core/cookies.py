"""Signed refresh-token cookie"""

from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, SignatureExpired, TimestampSigner

from app.config import settings
import logging

logger = logging.getLogger(__name__)

_COOKIE_SALT = "refresh-cookie"


def _signer() -> TimestampSigner:
    return TimestampSigner(settings.get_cookie_secret(), salt=_COOKIE_SALT)


def sign_refresh_cookie(refresh_token: str) -> str:
    """Wrap a refresh token in a tamper-evident envelope"""
    return _signer().sign(refresh_token).decode("utf-8")


def unsign_refresh_cookie(value: Optional[str]) -> Optional[str]:
    """
    Open a signed refresh cookie

    Args:
        value: Raw cookie value

    Returns:
        Optional[str]: Wrapped refresh token, or None if absent, tampered or stale
    """
    if not value:
        return None
    try:
        token = _signer().unsign(value, max_age=settings.refresh_cookie_max_age)
    except SignatureExpired:
        logger.warning("Refresh cookie signature expired")
        return None
    except BadSignature:
        logger.warning("Refresh cookie signature mismatch")
        return None
    return token.decode("utf-8")


def read_refresh_cookie(request: Request) -> Optional[str]:
    return unsign_refresh_cookie(request.cookies.get(settings.REFRESH_COOKIE_NAME))


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=sign_refresh_cookie(refresh_token),
        max_age=settings.refresh_cookie_max_age,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )

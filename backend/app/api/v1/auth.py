"""Authentication routes"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Optional
from urllib.parse import urlencode

from app.core.database import get_db
from app.core.cookies import read_refresh_cookie, set_refresh_cookie, clear_refresh_cookie
from app.config import settings
from app.schemas.user import CurrentUserResponse, RefreshResponse, UserResponse
from app.schemas.response import MessageResponse
from app.services.google_oauth import google_oauth
from app.services.session_service import session_service
from app.services.rate_limiter import rate_limiter
from app.api.deps import get_current_user, get_optional_current_user
from app.models.user import User
from app.core.exceptions import AuthenticationError, OAuthLoginError, RateLimitExceededError

logger = logging.getLogger(__name__)

router = APIRouter()


def _login_error_redirect(code: str) -> RedirectResponse:
    url = f"{settings.FRONTEND_URL}/login?{urlencode({'error': code})}"
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get("/google")
async def google_login(request: Request):
    """
    Start the Google OAuth2 flow

    Returns:
        Redirect to Google's consent page
    """
    redirect_uri = str(request.url_for("google_oauth2_callback"))
    return await google_oauth.authorize_redirect(request, redirect_uri)


@router.get("/google/callback", name="google_oauth2_callback")
async def google_oauth2_callback(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    OAuth2 callback - link the Google account and start a session

    On success the browser is sent to the frontend with the access token in
    the URL fragment and the refresh token in a signed httpOnly cookie. On
    failure it is sent to the login page with an ``error`` code.
    """
    try:
        identity = await google_oauth.fetch_identity(request)
        tokens = await run_in_threadpool(session_service.complete_login, db, identity)
    except OAuthLoginError as e:
        logger.warning(f"OAuth callback refused: {e.code}")
        return _login_error_redirect(e.code)
    except Exception as e:
        logger.error(f"OAuth callback error: {e}")
        return _login_error_redirect(OAuthLoginError.SERVER_ERROR)

    fragment = urlencode({"access_token": tokens.access_token})
    response = RedirectResponse(
        url=f"{settings.FRONTEND_URL}/auth/callback#{fragment}",
        status_code=status.HTTP_302_FOUND,
    )
    set_refresh_cookie(response, tokens.refresh_token)
    return response


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Exchange the refresh cookie for a new access token

    The refresh cookie is rotated on every successful call.

    Returns:
        New access token and user info
    """
    client_ip = request.client.host if request.client else "unknown"
    windows = [
        (settings.REFRESH_RATE_LIMIT_PER_MINUTE, 60),
        (settings.REFRESH_RATE_LIMIT_PER_HOUR, 3600),
    ]
    if not rate_limiter.allow(f"refresh:{client_ip}", windows):
        raise RateLimitExceededError("Too many refresh attempts. Slow down.")

    tokens = session_service.refresh_session(db, read_refresh_cookie(request))
    set_refresh_cookie(response, tokens.refresh_token)

    return RefreshResponse(
        access_token=tokens.access_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(tokens.user),
    )


@router.delete("/sign_out", response_model=MessageResponse)
def sign_out(
    response: Response,
    current_user: User = Depends(get_current_user)
):
    """
    Sign out - drop the refresh cookie

    The access token stays valid until it expires; the client discards it.
    """
    clear_refresh_cookie(response)
    logger.info(f"User {current_user.id} signed out")
    return MessageResponse(message="Signed out successfully")


@router.get("/current_user", response_model=CurrentUserResponse)
def current_user_info(
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """Get current user information"""
    if current_user is None:
        raise AuthenticationError("Not authenticated")
    return CurrentUserResponse(user=UserResponse.model_validate(current_user))

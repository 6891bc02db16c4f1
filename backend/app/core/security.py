"""Session token codec - signed, expiring JWTs for access and refresh"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from jose import JWTError, jwt
from app.config import settings
import logging
import secrets

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    """Token kind, carried in the ``typ`` claim"""
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    """Verified claim set of a session token"""
    subject: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    token_id: Optional[str] = None


def token_ttl(kind: TokenKind) -> timedelta:
    """Lifetime of a token of the given kind"""
    if kind == TokenKind.REFRESH:
        return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def issue_token(subject: str, kind: TokenKind, now: Optional[datetime] = None) -> str:
    """
    Create a signed session token

    Args:
        subject: User identity the token speaks for
        kind: Access or refresh
        now: Issuance instant, defaults to the current time

    Returns:
        str: Compact JWS string
    """
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    claims = {
        "sub": str(subject),
        "iat": issued_at,
        "exp": issued_at + token_ttl(kind),
        "typ": TokenKind(kind).value,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(subject: str) -> str:
    return issue_token(subject, TokenKind.ACCESS)


def create_refresh_token(subject: str) -> str:
    return issue_token(subject, TokenKind.REFRESH)


def verify_token(token: Optional[str], now: Optional[datetime] = None) -> Optional[TokenClaims]:
    """
    Verify signature and expiry of a session token

    The kind is reported, not enforced: callers that need a specific kind
    must compare ``claims.kind`` themselves. A token is invalid from its
    ``exp`` second onwards.

    Args:
        token: JWT string
        now: Verification instant, defaults to the current time

    Returns:
        Optional[TokenClaims]: Claims, or None for any failure
    """
    if not token:
        logger.warning("Token verification failed: empty token")
        return None

    try:
        # Expiry is checked below against ``now`` so the boundary is exact.
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        logger.warning("Token verification failed: %s", exc)
        return None

    current = now or datetime.now(timezone.utc)
    exp = payload.get("exp")
    iat = payload.get("iat")
    if not isinstance(exp, (int, float)) or not isinstance(iat, (int, float)):
        logger.warning("Token verification failed: missing exp/iat claims")
        return None
    if exp <= int(current.timestamp()):
        logger.warning("Token verification failed: expired at %s", exp)
        return None

    subject = payload.get("sub")
    if not subject:
        logger.warning("Token verification failed: missing subject")
        return None

    try:
        kind = TokenKind(payload.get("typ"))
    except ValueError:
        logger.warning("Token verification failed: unknown kind %r", payload.get("typ"))
        return None

    return TokenClaims(
        subject=str(subject),
        kind=kind,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        token_id=payload.get("jti"),
    )

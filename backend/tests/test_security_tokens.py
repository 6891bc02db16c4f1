from datetime import datetime, timedelta, timezone

from jose import jwt

from app.config import settings
from app.core.security import (
    TokenKind,
    create_access_token,
    create_refresh_token,
    issue_token,
    verify_token,
)


def test_access_token_round_trip():
    token = create_access_token("7")
    claims = verify_token(token)
    assert claims is not None
    assert claims.subject == "7"
    assert claims.kind == TokenKind.ACCESS
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)


def test_refresh_token_round_trip():
    claims = verify_token(create_refresh_token("9"))
    assert claims is not None
    assert claims.subject == "9"
    assert claims.kind == TokenKind.REFRESH
    assert claims.expires_at - claims.issued_at == timedelta(days=7)


def test_verify_does_not_enforce_kind():
    # Kind is reported to the caller, who decides.
    assert verify_token(create_refresh_token("1")).kind == TokenKind.REFRESH


def test_tokens_minted_together_differ():
    assert create_refresh_token("1") != create_refresh_token("1")


def test_access_token_expires_after_ttl():
    issued = datetime.now(timezone.utc) - timedelta(minutes=16)
    token = issue_token("3", TokenKind.ACCESS, now=issued)
    assert verify_token(token) is None


def test_token_is_invalid_exactly_at_expiry():
    issued = datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    token = issue_token("3", TokenKind.ACCESS, now=issued)
    expiry = issued + timedelta(minutes=15)

    assert verify_token(token, now=expiry - timedelta(seconds=1)) is not None
    assert verify_token(token, now=expiry) is None


def test_refresh_token_valid_for_seven_days():
    issued = datetime.now(timezone.utc) - timedelta(days=6, hours=23)
    assert verify_token(issue_token("3", TokenKind.REFRESH, now=issued)) is not None

    issued = datetime.now(timezone.utc) - timedelta(days=7, seconds=1)
    assert verify_token(issue_token("3", TokenKind.REFRESH, now=issued)) is None


def test_tampered_signature_rejected():
    token = create_access_token("5")
    head, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    assert verify_token(f"{head}.{payload}.{flipped}") is None


def test_foreign_secret_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "5", "typ": "access", "iat": now, "exp": now + timedelta(minutes=5)},
        "some-other-secret",
        algorithm=settings.ALGORITHM,
    )
    assert verify_token(token) is None


def test_malformed_and_empty_tokens_rejected():
    assert verify_token("not-a-jwt") is None
    assert verify_token("") is None
    assert verify_token(None) is None


def test_unknown_kind_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "5", "typ": "session", "iat": now, "exp": now + timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    assert verify_token(token) is None

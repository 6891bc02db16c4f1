"""Client-side access token holder"""

from typing import Optional


class TokenStore:
    """
    Holds the access token for one client session.

    The refresh token never lives here: the server keeps it in an httpOnly
    cookie that only the HTTP client's cookie jar sees.
    """

    def __init__(self, access_token: Optional[str] = None) -> None:
        self._access_token = access_token

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    def set_access_token(self, token: str) -> None:
        self._access_token = token

    def clear(self) -> None:
        self._access_token = None

    def is_authenticated(self) -> bool:
        return bool(self._access_token)

"""HTTP client for the todo API"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

import httpx

from app.client.refresh import RefreshCoordinator, SessionExpiredError
from app.client.token_store import TokenStore

logger = logging.getLogger(__name__)

# Request extension marking a request already replayed after a refresh.
_RETRIED = "auth_retried"


class ApiError(Exception):
    """Non-success response from the API"""

    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        message = payload.get("error") if isinstance(payload, dict) else None
        super().__init__(message or f"HTTP {status_code}")


class TodoApiClient:
    """
    Async client for the todo API.

    Sends the stored access token as a bearer header. A 401 triggers one
    refresh through the client's RefreshCoordinator and one replay of the
    request; a second 401 is returned to the caller as an ApiError.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api/v1``
        tokens: Access token store, a fresh one by default
        on_session_expired: Hook run when the refresh cookie is rejected
        transport: Optional httpx transport (tests, ASGI apps)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        *,
        tokens: Optional[TokenStore] = None,
        on_session_expired=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens or TokenStore()
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self.refresh_coordinator = RefreshCoordinator(
            self._exchange_refresh_cookie,
            self.tokens,
            on_session_expired=on_session_expired or self._default_session_expired,
        )

    async def __aenter__(self) -> "TodoApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._http.cookies

    def _default_session_expired(self) -> None:
        logger.info("Session expired, sign in again at %s", self.google_auth_url())

    async def _exchange_refresh_cookie(self) -> str:
        # Bypasses request() so a failing refresh is never itself refreshed.
        response = await self._http.post("/auth/refresh")
        response.raise_for_status()
        return response.json()["access_token"]

    def _build(self, method: str, url: str, token: Optional[str], **kwargs) -> httpx.Request:
        request = self._http.build_request(method, url, **kwargs)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return request

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send an authenticated request, refreshing the session once on 401

        Raises:
            SessionExpiredError: The refresh cookie was rejected
        """
        sent_token = self.tokens.access_token
        request = self._build(method, url, sent_token, **kwargs)
        response = await self._http.send(request)
        if response.status_code != 401 or request.extensions.get(_RETRIED):
            return response

        current = self.tokens.access_token
        if sent_token and current is None:
            # A refresh failed while this request was out; the session is over.
            raise SessionExpiredError("Session expired")
        if current and current != sent_token:
            # Another flow refreshed while this request was out.
            token = current
        else:
            token = await self.refresh_coordinator.refresh()

        retry = self._build(method, url, token, **kwargs)
        retry.extensions[_RETRIED] = True
        response = await self._http.send(retry)
        return response

    async def _json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = await self.request(method, url, **kwargs)
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.is_error:
            raise ApiError(response.status_code, payload)
        return payload

    # Auth

    def google_auth_url(self) -> str:
        return f"{self.base_url}/auth/google"

    def handle_oauth_callback(self, url: str) -> Optional[str]:
        """
        Store the access token from the OAuth callback URL

        The token arrives in the fragment (``#access_token=...``); an
        ``error`` parameter means the login failed.

        Returns:
            Optional[str]: The access token, or None on error
        """
        parts = urlsplit(url)
        params = parse_qs(parts.query)
        params.update(parse_qs(parts.fragment))

        error = params.get("error")
        if error:
            logger.error("OAuth error: %s", error[0])
            return None

        token = params.get("access_token")
        if not token:
            return None
        self.tokens.set_access_token(token[0])
        return token[0]

    def is_authenticated(self) -> bool:
        return self.tokens.is_authenticated()

    async def get_current_user(self) -> Dict[str, Any]:
        return (await self._json("GET", "/auth/current_user"))["user"]

    async def sign_out(self) -> None:
        try:
            await self._json("DELETE", "/auth/sign_out")
        except (ApiError, SessionExpiredError, httpx.HTTPError) as e:
            logger.error("Sign out error: %s", e)
        finally:
            self.tokens.clear()

    # Todos

    async def fetch_todos(self, priority: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"priority": priority} if priority else None
        return (await self._json("GET", "/todos", params=params))["todos"]

    async def create_todo(self, **fields) -> Dict[str, Any]:
        return (await self._json("POST", "/todos", json={"todo": fields}))["todo"]

    async def update_todo(self, todo_id: int, **fields) -> Dict[str, Any]:
        return (await self._json("PATCH", f"/todos/{todo_id}", json={"todo": fields}))["todo"]

    async def toggle_complete(self, todo_id: int, completed: bool) -> Dict[str, Any]:
        return await self.update_todo(todo_id, completed=completed)

    async def delete_todo(self, todo_id: int) -> None:
        await self._json("DELETE", f"/todos/{todo_id}")

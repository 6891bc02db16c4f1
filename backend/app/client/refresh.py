"""Single-flight access token refresh"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from app.client.token_store import TokenStore

logger = logging.getLogger(__name__)


class SessionExpiredError(Exception):
    """The refresh exchange failed; the user must sign in again"""


class RefreshCoordinator:
    """
    Collapses concurrent refresh attempts into one exchange.

    The first caller runs the exchange; callers arriving while it is in
    flight queue up and are resumed, in arrival order, with its result.
    Owned by a single API client; never shared between sessions.

    Args:
        exchange: Coroutine function returning a new access token
        tokens: Store updated with the new token, cleared on failure
        on_session_expired: Called once per failed exchange, e.g. to send
            the user back to the login page
    """

    def __init__(
        self,
        exchange: Callable[[], Awaitable[str]],
        tokens: TokenStore,
        on_session_expired: Optional[Callable[[], None]] = None,
    ) -> None:
        self._exchange = exchange
        self._tokens = tokens
        self._on_session_expired = on_session_expired
        self._in_flight = False
        self._waiters: Deque[asyncio.Future] = deque()
        self.exchange_count = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def refresh(self) -> str:
        """
        Obtain a new access token, joining an exchange already in flight

        Returns:
            str: The new access token

        Raises:
            SessionExpiredError: The exchange failed; stored credentials are cleared
        """
        if self._in_flight:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        self._in_flight = True
        self.exchange_count += 1
        exchange = asyncio.ensure_future(self._run_exchange())
        exchange.add_done_callback(self._retrieve_outcome)
        # Cancelling this caller leaves the exchange running for the waiters.
        return await asyncio.shield(exchange)

    async def _run_exchange(self) -> str:
        try:
            token = await self._exchange()
        except asyncio.CancelledError:
            self._in_flight = False
            self._settle(error="Token refresh was cancelled")
            raise
        except Exception as exc:
            logger.warning("Token refresh failed: %s", exc)
            self._in_flight = False
            self._tokens.clear()
            self._settle(error="Session expired")
            if self._on_session_expired is not None:
                self._on_session_expired()
            raise SessionExpiredError("Session expired") from exc

        self._tokens.set_access_token(token)
        self._in_flight = False
        self._settle(token=token)
        return token

    @staticmethod
    def _retrieve_outcome(exchange: asyncio.Future) -> None:
        # Outcome already reached the waiters.
        if not exchange.cancelled():
            exchange.exception()

    def _settle(self, token: Optional[str] = None, error: Optional[str] = None) -> None:
        """Resolve every queued waiter, oldest first"""
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(SessionExpiredError(error))
            else:
                waiter.set_result(token)

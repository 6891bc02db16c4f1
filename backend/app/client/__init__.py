"""Async client for the todo API with single-flight token refresh"""

from app.client.api import ApiError, TodoApiClient
from app.client.refresh import RefreshCoordinator, SessionExpiredError
from app.client.token_store import TokenStore

__all__ = ["ApiError", "TodoApiClient", "RefreshCoordinator", "SessionExpiredError", "TokenStore"]

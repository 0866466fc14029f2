"""Python client for the ERP API: HTTP client, session provider and query cache."""

from app.client.api import ApiError, ErpApiClient
from app.client.query_cache import QueryCache
from app.client.session import AuthState, SessionContext, SessionProvider
from app.client.token_store import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    "ApiError",
    "AuthState",
    "ErpApiClient",
    "FileTokenStore",
    "MemoryTokenStore",
    "QueryCache",
    "SessionContext",
    "SessionProvider",
    "TokenStore",
]

"""HTTP client for the ERP API with bearer auth and error mapping."""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from app.client.config import get_client_settings
from app.client.token_store import FileTokenStore, MemoryTokenStore, TokenStore
from app.core.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ApiError(AppError):
    """HTTP error from the API whose status has no dedicated error class."""

    code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        if code:
            self.code = code


_ERRORS_BY_STATUS: dict[int, type[AppError]] = {
    400: ValidationError,
    401: UnauthenticatedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def _error_from_response(response: httpx.Response) -> AppError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("detail") or body.get("message") or response.reason_phrase or "Request failed"
    if not isinstance(message, str):
        message = str(message)
    details = {k: v for k, v in body.items() if k not in ("success", "error", "detail", "message")}
    error_cls = _ERRORS_BY_STATUS.get(response.status_code)
    if error_cls is not None:
        return error_cls(message, details)
    return ApiError(message, response.status_code, code=body.get("error"), details=details)


class ErpApiClient:
    """
    Thin wrapper over httpx.Client.

    Adds the stored bearer token to every request, returns decoded JSON, and
    raises AppError subclasses for HTTP errors (UpstreamError when the API
    cannot be reached). A 401 triggers one refresh-token rotation and a replay
    of the request; on_unauthenticated runs when the 401 stands.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
        on_unauthenticated: Callable[[], None] | None = None,
    ) -> None:
        settings = get_client_settings()
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        if token_store is None:
            token_store = (
                FileTokenStore(settings.TOKEN_FILE) if settings.TOKEN_FILE else MemoryTokenStore()
            )
        self.token_store = token_store
        self.on_unauthenticated = on_unauthenticated
        self._client = httpx.Client(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout or settings.REQUEST_TIMEOUT_SEC,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ErpApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
        retry_on_401: bool = True,
    ) -> Any:
        headers: dict[str, str] = {}
        if authenticated:
            token = self.token_store.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.warning("API request failed: %s %s: %s", method, path, e)
            raise UpstreamError(f"Could not reach the API: {e}") from e

        if response.status_code == 401 and authenticated:
            if retry_on_401 and self._rotate_tokens():
                return self.request(
                    method, path, json=json, params=params, retry_on_401=False
                )
            error = _error_from_response(response)
            if self.on_unauthenticated:
                self.on_unauthenticated()
            raise error
        if response.status_code >= 400:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _rotate_tokens(self) -> bool:
        """Exchange the stored refresh token for a new pair; False when that is not possible."""
        refresh_token = self.token_store.get_refresh_token()
        if not refresh_token:
            return False
        try:
            result = self.refresh(refresh_token)
        except AppError as e:
            logger.info("Refresh token rejected: %s", e.message)
            return False
        self.token_store.save(result["access_token"], result.get("refresh_token"))
        return True

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def login(self, email: str, password: str) -> dict[str, Any]:
        """POST /auth/login; returns the token pair and user (tokens are not stored here)."""
        return self.request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )

    def logout(self) -> None:
        self.request("POST", "/auth/logout")

    def profile(self) -> dict[str, Any]:
        return self.request("GET", "/auth/profile")

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        return self.request(
            "POST",
            "/auth/refresh",
            json={"refresh_token": refresh_token},
            authenticated=False,
        )

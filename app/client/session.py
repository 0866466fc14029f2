"""Client-side session provider: who is logged in, and the transitions between states."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.client.api import ErpApiClient
from app.core.exceptions import AppError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionContext:
    """
    Snapshot handed to consumers: identity, state and the actions they may
    dispatch. Consumers receive it explicitly; there is no global session.
    """

    user: dict[str, Any] | None
    state: AuthState
    login: Callable[[str, str], dict[str, Any]]
    logout: Callable[[], None]
    refresh_user: Callable[[], None]

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.state is AuthState.CHECKING


class SessionProvider:
    """
    Owns the identity of the current client.

    States: unauthenticated -> checking -> authenticated / unauthenticated.
    Any 401 reported by the API client drops the identity and stored tokens.
    """

    def __init__(
        self,
        api: ErpApiClient,
        redirect: Callable[[str], None] | None = None,
        login_path: str = LOGIN_PATH,
    ) -> None:
        self.api = api
        self.token_store = api.token_store
        self.redirect = redirect
        self.login_path = login_path
        self.state = AuthState.UNAUTHENTICATED
        self.user: dict[str, Any] | None = None
        self._listeners: list[Callable[[SessionContext], None]] = []
        api.on_unauthenticated = self.handle_unauthenticated

    def subscribe(self, listener: Callable[[SessionContext], None]) -> Callable[[], None]:
        """Call listener on every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def context(self) -> SessionContext:
        return SessionContext(
            user=self.user,
            state=self.state,
            login=self.login,
            logout=self.logout,
            refresh_user=self.refresh_user,
        )

    def _set(self, state: AuthState, user: dict[str, Any] | None) -> None:
        previous = self.state
        self.state = state
        self.user = user
        if previous is not state:
            logger.debug("Session state %s -> %s", previous.value, state.value)
        snapshot = self.context()
        for listener in list(self._listeners):
            listener(snapshot)

    def mount(self) -> SessionContext:
        """Validate a stored token, if any, by fetching the profile."""
        if not self.token_store.get_token():
            self._set(AuthState.UNAUTHENTICATED, None)
            return self.context()
        self._set(AuthState.CHECKING, None)
        try:
            profile = self.api.profile()
        except AppError as e:
            logger.info("Stored session rejected: %s", e.message)
            self.token_store.clear()
            self._set(AuthState.UNAUTHENTICATED, None)
            return self.context()
        self._set(AuthState.AUTHENTICATED, profile)
        return self.context()

    def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Log in and store the token pair. Errors propagate to the caller and
        leave the current state and stored tokens as they were.
        """
        result = self.api.login(email, password)
        self.token_store.save(result["access_token"], result.get("refresh_token"))
        self._set(AuthState.AUTHENTICATED, result["user"])
        return result["user"]

    def logout(self) -> None:
        """
        End the session. The server call is best effort: whatever it returns,
        tokens are cleared and the client is sent to the login page.
        """
        if self.token_store.get_token():
            try:
                self.api.logout()
            except AppError as e:
                logger.warning("Logout request failed; clearing local session anyway: %s", e.message)
        self.token_store.clear()
        self._set(AuthState.UNAUTHENTICATED, None)
        if self.redirect is not None:
            self.redirect(self.login_path)

    def refresh_user(self) -> None:
        """Re-run the stored-token check (e.g. after a profile update)."""
        self.mount()

    def handle_unauthenticated(self) -> None:
        """Called by the API client on any 401."""
        self.token_store.clear()
        if self.state is not AuthState.UNAUTHENTICATED:
            self._set(AuthState.UNAUTHENTICATED, None)

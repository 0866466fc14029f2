"""Where the client keeps its access and refresh tokens between calls."""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "auth_token"
REFRESH_TOKEN_KEY = "refresh_token"


class TokenStore(Protocol):
    def get_token(self) -> str | None: ...

    def get_refresh_token(self) -> str | None: ...

    def save(self, access_token: str, refresh_token: str | None = None) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Tokens held for the lifetime of the process."""

    def __init__(self) -> None:
        self._tokens: dict[str, str] = {}

    def get_token(self) -> str | None:
        return self._tokens.get(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> str | None:
        return self._tokens.get(REFRESH_TOKEN_KEY)

    def save(self, access_token: str, refresh_token: str | None = None) -> None:
        self._tokens[ACCESS_TOKEN_KEY] = access_token
        if refresh_token:
            self._tokens[REFRESH_TOKEN_KEY] = refresh_token

    def clear(self) -> None:
        self._tokens.clear()


class FileTokenStore:
    """
    Tokens persisted as JSON ({"auth_token": ..., "refresh_token": ...}).

    The file is created with owner-only permissions. A missing or unreadable
    file reads as "no token".
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get_token(self) -> str | None:
        return self._read().get(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> str | None:
        return self._read().get(REFRESH_TOKEN_KEY)

    def save(self, access_token: str, refresh_token: str | None = None) -> None:
        data = self._read()
        data[ACCESS_TOKEN_KEY] = access_token
        if refresh_token:
            data[REFRESH_TOKEN_KEY] = refresh_token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

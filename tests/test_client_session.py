"""Client session provider and API client against a stubbed transport."""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx

from app.client import (
    AuthState,
    ErpApiClient,
    FileTokenStore,
    MemoryTokenStore,
    SessionProvider,
)
from app.client.config import ClientSettings
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    UnauthenticatedError,
    UpstreamError,
)

PROFILE = {"id": 1, "email": "admin@plataforma.app", "role": "admin", "permissions": []}


def _json(status_code: int, body: dict) -> httpx.Response:
    return httpx.Response(status_code, json=body)


class FakeApi:
    """Routes requests by method and path; records what it saw."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.logout_status = 200
        self.profile_status = 200
        self.fail_connect = False
        self.refresh_status = 401

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_connect:
            raise httpx.ConnectError("connection refused", request=request)
        route = (request.method, request.url.path)
        if route == ("POST", "/auth/login"):
            body = json.loads(request.content)
            if body["password"] != "Admin@2025":
                return _json(401, {"success": False, "error": "UNAUTHENTICATED", "detail": "Invalid email or password."})
            return _json(200, {"access_token": "acc", "refresh_token": "ref", "user": PROFILE})
        if route == ("POST", "/auth/refresh"):
            if self.refresh_status != 200:
                return _json(401, {"success": False, "error": "UNAUTHENTICATED", "detail": "Invalid refresh token."})
            self.profile_status = 200
            return _json(200, {"access_token": "acc2", "refresh_token": "ref2", "user": PROFILE})
        if route == ("POST", "/auth/logout"):
            if self.logout_status != 200:
                return _json(self.logout_status, {"success": False, "error": "INTERNAL", "detail": "boom"})
            return _json(200, {"message": "Logged out."})
        if route == ("GET", "/auth/profile"):
            if self.profile_status == 401:
                return _json(401, {"success": False, "error": "UNAUTHENTICATED", "detail": "Session expired."})
            return _json(200, PROFILE)
        if route == ("POST", "/api/pro/projects"):
            return _json(409, {"success": False, "error": "CONFLICT", "detail": "Project code already in use.", "code": "X"})
        if route == ("DELETE", "/api/prd/bom/1"):
            return _json(403, {"success": False, "error": "FORBIDDEN", "detail": "no", "required": "bom.delete"})
        if route == ("DELETE", "/api/pro/tasks/1"):
            return httpx.Response(204)
        return _json(404, {"success": False, "error": "NOT_FOUND", "detail": "Not found"})


class ClientTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.fake = FakeApi()
        self.store = MemoryTokenStore()
        self.api = ErpApiClient(
            base_url="http://erp.test",
            token_store=self.store,
            transport=httpx.MockTransport(self.fake),
        )
        self.redirects: list[str] = []
        self.provider = SessionProvider(self.api, redirect=self.redirects.append)

    def tearDown(self) -> None:
        self.api.close()


class TestSessionProvider(ClientTestCase):
    def test_starts_unauthenticated(self) -> None:
        ctx = self.provider.context()
        self.assertIs(ctx.state, AuthState.UNAUTHENTICATED)
        self.assertFalse(ctx.is_authenticated)
        self.assertIsNone(ctx.user)

    def test_mount_without_token_skips_network(self) -> None:
        ctx = self.provider.mount()
        self.assertIs(ctx.state, AuthState.UNAUTHENTICATED)
        self.assertEqual(self.fake.requests, [])

    def test_mount_with_valid_token(self) -> None:
        self.store.save("acc")
        states: list[AuthState] = []
        self.provider.subscribe(lambda ctx: states.append(ctx.state))
        ctx = self.provider.mount()
        self.assertTrue(ctx.is_authenticated)
        self.assertEqual(ctx.user["email"], PROFILE["email"])
        self.assertEqual(states, [AuthState.CHECKING, AuthState.AUTHENTICATED])
        self.assertEqual(self.fake.requests[0].headers["Authorization"], "Bearer acc")

    def test_mount_with_rejected_token_clears_it(self) -> None:
        self.store.save("stale", "ref")
        self.fake.profile_status = 401
        ctx = self.provider.mount()
        self.assertIs(ctx.state, AuthState.UNAUTHENTICATED)
        self.assertIsNone(self.store.get_token())
        self.assertIsNone(self.store.get_refresh_token())

    def test_login_stores_tokens(self) -> None:
        user = self.provider.login("admin@plataforma.app", "Admin@2025")
        self.assertEqual(user["role"], "admin")
        self.assertEqual(self.store.get_token(), "acc")
        self.assertEqual(self.store.get_refresh_token(), "ref")
        self.assertTrue(self.provider.context().is_authenticated)
        self.assertNotIn("Authorization", self.fake.requests[0].headers)

    def test_failed_login_raises(self) -> None:
        with self.assertRaises(UnauthenticatedError):
            self.provider.login("admin@plataforma.app", "wrong")
        self.assertIs(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertIsNone(self.store.get_token())

    def test_logout_clears_and_redirects(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.provider.logout()
        self.assertIsNone(self.store.get_token())
        self.assertIs(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertEqual(self.redirects, ["/login"])

    def test_logout_when_server_fails(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.fake.logout_status = 500
        self.provider.logout()
        self.assertIsNone(self.store.get_token())
        self.assertIsNone(self.provider.user)
        self.assertEqual(self.redirects, ["/login"])

    def test_logout_when_server_unreachable(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.fake.fail_connect = True
        self.provider.logout()
        self.assertIsNone(self.store.get_token())
        self.assertEqual(self.redirects, ["/login"])

    def test_unrecoverable_401_drops_the_session(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.fake.profile_status = 401
        with self.assertRaises(UnauthenticatedError):
            self.api.profile()
        self.assertIs(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertIsNone(self.store.get_token())

    def test_401_is_recovered_with_refresh_token(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.fake.profile_status = 401
        self.fake.refresh_status = 200
        self.assertEqual(self.api.profile(), PROFILE)
        self.assertTrue(self.provider.context().is_authenticated)
        self.assertEqual(self.store.get_token(), "acc2")
        self.assertEqual(self.store.get_refresh_token(), "ref2")
        paths = [r.url.path for r in self.fake.requests]
        self.assertEqual(paths, ["/auth/login", "/auth/profile", "/auth/refresh", "/auth/profile"])
        self.assertEqual(self.fake.requests[-1].headers["Authorization"], "Bearer acc2")
        self.assertNotIn("Authorization", self.fake.requests[2].headers)

    def test_rejected_refresh_is_tried_once(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.fake.profile_status = 401
        with self.assertRaises(UnauthenticatedError):
            self.api.profile()
        paths = [r.url.path for r in self.fake.requests]
        self.assertEqual(paths.count("/auth/refresh"), 1)
        self.assertIs(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertIsNone(self.store.get_refresh_token())

    def test_failed_login_keeps_existing_session(self) -> None:
        self.provider.login("admin@plataforma.app", "Admin@2025")
        with self.assertRaises(UnauthenticatedError):
            self.provider.login("admin@plataforma.app", "wrong")
        self.assertIs(self.provider.state, AuthState.AUTHENTICATED)
        self.assertEqual(self.provider.user["email"], PROFILE["email"])
        self.assertEqual(self.store.get_token(), "acc")

    def test_unsubscribe(self) -> None:
        seen: list[AuthState] = []
        unsubscribe = self.provider.subscribe(lambda ctx: seen.append(ctx.state))
        unsubscribe()
        self.provider.login("admin@plataforma.app", "Admin@2025")
        self.assertEqual(seen, [])

    def test_context_actions_dispatch_to_provider(self) -> None:
        ctx = self.provider.context()
        ctx.login("admin@plataforma.app", "Admin@2025")
        self.assertTrue(self.provider.context().is_authenticated)
        ctx.logout()
        self.assertFalse(self.provider.context().is_authenticated)


class TestApiClientErrors(ClientTestCase):
    def test_status_codes_map_to_error_types(self) -> None:
        self.store.save("acc")
        with self.assertRaises(ConflictError) as cm:
            self.api.post("/api/pro/projects", json={"name": "x"})
        self.assertEqual(cm.exception.message, "Project code already in use.")
        self.assertEqual(cm.exception.details, {"code": "X"})

        with self.assertRaises(ForbiddenError) as cm:
            self.api.delete("/api/prd/bom/1")
        self.assertEqual(cm.exception.details["required"], "bom.delete")

    def test_no_content_returns_none(self) -> None:
        self.assertIsNone(self.api.delete("/api/pro/tasks/1"))

    def test_unreachable_api_is_upstream_error(self) -> None:
        self.fake.fail_connect = True
        with self.assertRaises(UpstreamError):
            self.api.get("/api/pro/projects")

    def test_token_file_setting_selects_file_store(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "tokens.json"
            settings = ClientSettings(TOKEN_FILE=str(path))
            with patch("app.client.api.get_client_settings", return_value=settings):
                api = ErpApiClient(transport=httpx.MockTransport(self.fake))
            try:
                self.assertIsInstance(api.token_store, FileTokenStore)
                SessionProvider(api).login("admin@plataforma.app", "Admin@2025")
                self.assertEqual(json.loads(path.read_text())["auth_token"], "acc")
            finally:
                api.close()

    def test_no_token_file_uses_memory_store(self) -> None:
        with patch("app.client.api.get_client_settings", return_value=ClientSettings(TOKEN_FILE=None)):
            api = ErpApiClient(transport=httpx.MockTransport(self.fake))
        self.assertIsInstance(api.token_store, MemoryTokenStore)
        api.close()


class TestFileTokenStore(unittest.TestCase):
    def test_round_trip_and_clear(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "session" / "tokens.json"
            store = FileTokenStore(path)
            self.assertIsNone(store.get_token())
            store.save("acc", "ref")
            self.assertEqual(json.loads(path.read_text()), {"auth_token": "acc", "refresh_token": "ref"})
            self.assertEqual(path.stat().st_mode & 0o777, 0o600)
            store.clear()
            self.assertFalse(path.exists())
            store.clear()

    def test_corrupt_file_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "tokens.json"
            path.write_text("{not json")
            self.assertIsNone(FileTokenStore(path).get_token())


if __name__ == "__main__":
    unittest.main()

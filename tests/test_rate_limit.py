"""Per-address request limits on credential endpoints."""

import unittest

from limits import parse

from app.core.config import settings
from app.core.rate_limit import limiter
from support import ADMIN_EMAIL, ADMIN_PASSWORD, ApiTestCase


class TestRateLimits(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        limiter.reset()
        limiter.enabled = True

    def tearDown(self) -> None:
        limiter.enabled = False
        limiter.reset()
        super().tearDown()

    def _exhaust_login(self) -> None:
        allowed = parse(settings.RATE_LIMIT_AUTH).amount
        for _ in range(allowed):
            resp = self.client.post(
                "/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"}
            )
            self.assertEqual(resp.status_code, 401)

    def test_login_attempts_beyond_the_window_are_429(self) -> None:
        self._exhaust_login()
        resp = self.client.post(
            "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        self.assertEqual(resp.status_code, 429)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "RATE_LIMITED")
        self.assertIn("limit", body)

    def test_login_limit_leaves_other_routes_open(self) -> None:
        self._exhaust_login()
        self.assertEqual(self.client.get("/health").status_code, 200)
        resp = self.client.post("/auth/forgot-password", json={"email": ADMIN_EMAIL})
        self.assertEqual(resp.status_code, 202)

    def test_reset_clears_the_window(self) -> None:
        self._exhaust_login()
        limiter.reset()
        resp = self.client.post(
            "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        self.assertEqual(resp.status_code, 200)


if __name__ == "__main__":
    unittest.main()

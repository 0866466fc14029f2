"""Health endpoint, root route and the shared error envelope."""

import unittest

from support import ApiTestCase


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["environment"], "test")
        self.assertEqual(body["service"], "Plataforma ERP")

    def test_health_needs_no_token(self) -> None:
        self.assertEqual(self.client.get("/health").status_code, 200)
        self.assertEqual(self.client.get("/").status_code, 200)

    def test_validation_errors_use_the_envelope(self) -> None:
        resp = self.client.post(
            "/api/prd/work-centers", json={"name": "sem codigo"}, headers=self.admin_headers()
        )
        self.assertEqual(resp.status_code, 422)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "VALIDATION_ERROR")
        self.assertEqual(body["errors"][0]["field"], "code")

    def test_bad_path_parameter_is_422(self) -> None:
        resp = self.client.get("/api/pro/projects/abc", headers=self.admin_headers())
        self.assertEqual(resp.status_code, 422)

    def test_cors_preflight(self) -> None:
        resp = self.client.options(
            "/api/pro/projects",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("access-control-allow-origin", resp.headers)


if __name__ == "__main__":
    unittest.main()

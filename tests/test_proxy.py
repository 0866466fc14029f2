"""CORS proxy: forwarding, preflight and upstream failure handling."""

import json
import unittest

import httpx
from fastapi.testclient import TestClient

from app.proxy import create_proxy_app

TARGET = "http://api.internal:8000"


class TestProxy(unittest.TestCase):
    def _client(self, handler) -> TestClient:
        return TestClient(create_proxy_app(target_url=TARGET, transport=httpx.MockTransport(handler)))

    def test_forwards_method_path_query_and_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 7}, headers={"X-Upstream": "yes"})

        with self._client(handler) as client:
            resp = client.post(
                "/api/pro/projects?draft=1",
                json={"name": "P"},
                headers={"Authorization": "Bearer abc"},
            )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json(), {"id": 7})
        self.assertEqual(resp.headers["x-upstream"], "yes")
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")

        forwarded = seen[0]
        self.assertEqual(forwarded.method, "POST")
        self.assertEqual(str(forwarded.url), f"{TARGET}/api/pro/projects?draft=1")
        self.assertEqual(forwarded.headers["authorization"], "Bearer abc")
        self.assertEqual(json.loads(forwarded.content), {"name": "P"})

    def test_upstream_errors_pass_through(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"success": False, "error": "NOT_FOUND"})

        with self._client(handler) as client:
            resp = client.get("/api/prd/bom/9")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "NOT_FOUND")

    def test_preflight_is_answered_locally(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        with self._client(handler) as client:
            resp = client.options("/api/prd/bom")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("Authorization", resp.headers["access-control-allow-headers"])
        self.assertIn("DELETE", resp.headers["access-control-allow-methods"])
        self.assertEqual(calls, [])

    def test_unreachable_upstream_is_proxy_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self._client(handler) as client:
            resp = client.get("/health")
        self.assertEqual(resp.status_code, 500)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "PROXY_ERROR")
        self.assertIn("connection refused", body["message"])
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")

    def test_timeout_is_proxy_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with self._client(handler) as client:
            resp = client.get("/api/pro/tasks")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "PROXY_ERROR")


if __name__ == "__main__":
    unittest.main()

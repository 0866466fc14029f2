"""Work center endpoints: CRUD, capacity and schedule windows, statistics."""

import unittest

from support import ApiTestCase

BASE = "/api/prd/work-centers"


class TestWorkCenters(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.auth = self.admin_headers()

    def _create(self, **overrides) -> dict:
        body = {
            "code": "wc-01",
            "name": "Torno CNC",
            "kind": "automatic",
            "capacity_hours_per_day": 10,
            "efficiency_pct": 80,
            "availability_pct": 50,
            "hourly_cost": 120,
        }
        body.update(overrides)
        return self.post_ok(BASE, body, self.auth)

    def test_create_then_get_returns_same_entity(self) -> None:
        created = self._create()
        self.assertEqual(created["code"], "WC-01")
        self.assertEqual(created["working_days"], [0, 1, 2, 3, 4])
        fetched = self.client.get(f"{BASE}/{created['id']}", headers=self.auth)
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), created)

    def test_duplicate_code_is_409(self) -> None:
        self._create()
        resp = self.client.post(BASE, json={"code": "WC-01", "name": "Outro"}, headers=self.auth)
        self.assertEqual(resp.status_code, 409)

    def test_invalid_working_days_is_422(self) -> None:
        resp = self.client.post(
            BASE, json={"code": "X", "name": "X", "working_days": [7]}, headers=self.auth
        )
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "VALIDATION_ERROR")

    def test_update_and_soft_delete(self) -> None:
        wc = self._create()
        resp = self.client.put(f"{BASE}/{wc['id']}", json={"available": False}, headers=self.auth)
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["available"])

        resp = self.client.delete(f"{BASE}/{wc['id']}", headers=self.auth)
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(self.client.get(f"{BASE}/{wc['id']}", headers=self.auth).status_code, 404)
        listing = self.client.get(BASE, headers=self.auth).json()
        self.assertEqual(listing["pagination"]["total"], 0)

    def test_list_filters(self) -> None:
        self._create()
        self._create(code="WC-02", name="Montagem", kind="manual")
        resp = self.client.get(f"{BASE}?kind=manual", headers=self.auth)
        self.assertEqual([w["code"] for w in resp.json()["data"]], ["WC-02"])
        resp = self.client.get(f"{BASE}?search=torno", headers=self.auth)
        self.assertEqual([w["code"] for w in resp.json()["data"]], ["WC-01"])

    def test_capacity_over_a_week(self) -> None:
        wc = self._create()
        # 2025-01-06 is a Monday: five working days then a weekend
        resp = self.client.get(
            f"{BASE}/{wc['id']}/capacity?start_date=2025-01-06&end_date=2025-01-12",
            headers=self.auth,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body["effective_hours_per_day"], 4.0)
        self.assertEqual(body["available_hours"], 20.0)
        self.assertEqual(len(body["days"]), 7)
        self.assertEqual([d["working_day"] for d in body["days"]], [True] * 5 + [False] * 2)
        self.assertEqual(body["current_load_hours"], 0.0)

    def test_capacity_rejects_inverted_window(self) -> None:
        wc = self._create()
        resp = self.client.get(
            f"{BASE}/{wc['id']}/capacity?start_date=2025-01-10&end_date=2025-01-01",
            headers=self.auth,
        )
        self.assertEqual(resp.status_code, 422)

    def test_schedule_lists_orders_in_window(self) -> None:
        wc = self._create()
        bom = self.post_ok(
            "/api/prd/bom",
            {"product_code": "MESA", "production_hours": 2, "setup_hours": 1},
            self.auth,
        )
        self.post_ok(
            "/api/prd/production-orders",
            {
                "bom_id": bom["id"],
                "work_center_id": wc["id"],
                "planned_quantity": 3,
                "planned_start": "2025-01-07T08:00:00Z",
            },
            self.auth,
        )
        resp = self.client.get(
            f"{BASE}/{wc['id']}/schedule?start_date=2025-01-06&end_date=2025-01-12",
            headers=self.auth,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body["total_orders"], 1)
        self.assertEqual(body["entries"][0]["estimated_hours"], 7.0)

    def test_delete_blocked_by_active_orders(self) -> None:
        wc = self._create()
        bom = self.post_ok("/api/prd/bom", {"product_code": "MESA"}, self.auth)
        self.post_ok(
            "/api/prd/production-orders",
            {"bom_id": bom["id"], "work_center_id": wc["id"], "planned_quantity": 1},
            self.auth,
        )
        resp = self.client.delete(f"{BASE}/{wc['id']}", headers=self.auth)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["active_orders"], 1)

    def test_stats(self) -> None:
        self._create()
        self._create(code="WC-02", name="Montagem", kind="manual", available=False)
        resp = self.client.get(f"{BASE}/stats", headers=self.auth)
        body = resp.json()
        self.assertEqual(body["total"], 2)
        self.assertEqual(body["available"], 1)
        self.assertEqual(body["by_kind"], {"automatic": 1, "manual": 1})

    def test_viewer_cannot_create(self) -> None:
        token = self.token_for("viewer")
        resp = self.client.post(BASE, json={"code": "V", "name": "V"}, headers=self.headers(token))
        self.assertEqual(resp.status_code, 403)


    def test_null_for_required_field_is_422(self) -> None:
        wc = self._create(notes="turno A")
        for field in ("name", "capacity_hours_per_day", "working_days"):
            resp = self.client.put(f"{BASE}/{wc['id']}", json={field: None}, headers=self.auth)
            self.assertEqual(resp.status_code, 422, field)
        resp = self.client.put(f"{BASE}/{wc['id']}", json={"notes": None}, headers=self.auth)
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()["notes"])


if __name__ == "__main__":
    unittest.main()

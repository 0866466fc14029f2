"""BOM endpoints: CRUD, multi-level explosion and cost calculation."""

import unittest

from support import ApiTestCase

BASE = "/api/prd/bom"


class TestBom(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.auth = self.admin_headers()

    def _bom(self, product_code: str, items: list[dict], **extra) -> dict:
        body = {"product_code": product_code, "items": items}
        body.update(extra)
        return self.post_ok(BASE, body, self.auth)

    def test_create_then_get(self) -> None:
        created = self._bom(
            "cadeira",
            [
                {"component_code": "perna", "quantity": 4},
                {"component_code": "assento", "quantity": 1, "item_type": "semi_finished"},
            ],
        )
        self.assertEqual(created["product_code"], "CADEIRA")
        self.assertEqual([i["position"] for i in created["items"]], [1, 2])
        fetched = self.client.get(f"{BASE}/{created['id']}", headers=self.auth)
        self.assertEqual(fetched.json(), created)

    def test_version_is_unique_per_product(self) -> None:
        self._bom("CADEIRA", [])
        resp = self.client.post(BASE, json={"product_code": "CADEIRA"}, headers=self.auth)
        self.assertEqual(resp.status_code, 409)
        self._bom("CADEIRA", [], version="2.0")

    def test_operation_with_unknown_work_center_is_404(self) -> None:
        resp = self.client.post(
            BASE,
            json={
                "product_code": "MESA",
                "operations": [{"sequence": 1, "description": "Corte", "work_center_id": 99}],
            },
            headers=self.auth,
        )
        self.assertEqual(resp.status_code, 404)

    def test_update_replaces_items(self) -> None:
        bom = self._bom("MESA", [{"component_code": "TAMPO", "quantity": 1}])
        resp = self.client.put(
            f"{BASE}/{bom['id']}",
            json={"items": [{"component_code": "PE", "quantity": 4}], "notes": "rev"},
            headers=self.auth,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual([i["component_code"] for i in body["items"]], ["PE"])
        self.assertEqual(body["notes"], "rev")

    def test_explode_multiplies_down_the_tree(self) -> None:
        self._bom("ASSENTO", [{"component_code": "ESPUMA", "quantity": 2}])
        top = self._bom(
            "CADEIRA",
            [
                {"component_code": "PERNA", "quantity": 4},
                {"component_code": "ASSENTO", "quantity": 3},
            ],
        )
        resp = self.client.get(f"{BASE}/{top['id']}/explode", headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        seat = next(i for i in body["items"] if i["component_code"] == "ASSENTO")
        self.assertEqual(seat["level"], 1)
        self.assertEqual(len(seat["children"]), 1)
        self.assertEqual(seat["children"][0]["level"], 2)
        self.assertEqual(seat["children"][0]["total_quantity"], 6.0)
        self.assertEqual(body["flat"], {"ESPUMA": 6.0, "PERNA": 4.0})

    def test_explode_respects_levels(self) -> None:
        self._bom("ASSENTO", [{"component_code": "ESPUMA", "quantity": 2}])
        top = self._bom("CADEIRA", [{"component_code": "ASSENTO", "quantity": 1}])
        body = self.client.get(f"{BASE}/{top['id']}/explode?levels=1", headers=self.auth).json()
        self.assertEqual(body["items"][0]["children"], [])
        self.assertEqual(body["flat"], {"ASSENTO": 1.0})

    def test_explode_stops_at_cycles(self) -> None:
        top = self._bom("A", [{"component_code": "B", "quantity": 1}])
        self._bom("B", [{"component_code": "A", "quantity": 2}])
        resp = self.client.get(f"{BASE}/{top['id']}/explode", headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        b = resp.json()["items"][0]
        self.assertFalse(b["cycle"])
        a = b["children"][0]
        self.assertTrue(a["cycle"])
        self.assertEqual(a["children"], [])

    def test_cost_calculation(self) -> None:
        wc = self.post_ok(
            "/api/prd/work-centers", {"code": "SERRA", "name": "Serra", "hourly_cost": 60}, self.auth
        )
        bom = self._bom(
            "MESA",
            [
                {"component_code": "TAMPO", "quantity": 1, "unit_cost": 100},
                {"component_code": "PE", "quantity": 4, "unit_cost": 10, "scrap_pct": 50},
            ],
            operations=[
                {
                    "sequence": 1,
                    "description": "Corte",
                    "work_center_id": wc["id"],
                    "setup_minutes": 30,
                    "run_minutes": 60,
                }
            ],
        )
        resp = self.client.post(f"{BASE}/{bom['id']}/cost-calc", json={"quantity": 2}, headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        cost = resp.json()
        # materials: 1*100*2 + 4*1.5*10*2 = 320; labour: 0.5h*60 + 1h*60*2 = 150
        self.assertEqual(cost["material_cost"], 320.0)
        self.assertEqual(cost["labour_cost"], 150.0)
        self.assertEqual(cost["overhead_cost"], 70.5)
        self.assertEqual(cost["total_cost"], 540.5)
        self.assertEqual(cost["unit_cost"], 270.25)

    def test_cost_defaults_to_one_unit(self) -> None:
        bom = self._bom("MESA", [{"component_code": "TAMPO", "quantity": 1, "unit_cost": 100}])
        resp = self.client.post(f"{BASE}/{bom['id']}/cost-calc", headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["quantity"], 1.0)
        self.assertEqual(resp.json()["total_cost"], 115.0)

    def test_delete_blocked_while_orders_active(self) -> None:
        bom = self._bom("MESA", [])
        self.post_ok("/api/prd/production-orders", {"bom_id": bom["id"], "planned_quantity": 1}, self.auth)
        self.assertEqual(self.client.delete(f"{BASE}/{bom['id']}", headers=self.auth).status_code, 409)

    def test_delete(self) -> None:
        bom = self._bom("MESA", [])
        self.assertEqual(self.client.delete(f"{BASE}/{bom['id']}", headers=self.auth).status_code, 204)
        self.assertEqual(self.client.get(f"{BASE}/{bom['id']}", headers=self.auth).status_code, 404)


    def test_null_for_required_field_is_422(self) -> None:
        bom = self._bom("MESA", [{"component_code": "TAMPO", "quantity": 1}], notes="rev A")
        for field in ("version", "production_hours", "items"):
            resp = self.client.put(f"{BASE}/{bom['id']}", json={field: None}, headers=self.auth)
            self.assertEqual(resp.status_code, 422, field)
        resp = self.client.put(f"{BASE}/{bom['id']}", json={"notes": None}, headers=self.auth)
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()["notes"])
        self.assertEqual(len(resp.json()["items"]), 1)


if __name__ == "__main__":
    unittest.main()

"""Project endpoints: codes, status workflow, closing and derived views."""

import unittest

from support import ApiTestCase

BASE = "/api/pro/projects"
TASKS = "/api/pro/tasks"


class TestProjects(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.auth = self.admin_headers()

    def _project(self, **overrides) -> dict:
        body = {"name": "Linha de montagem", "budget": 1000}
        body.update(overrides)
        return self.post_ok(BASE, body, self.auth)

    def _task(self, project_id: int, **overrides) -> dict:
        body = {"project_id": project_id, "name": "Tarefa", "estimated_hours": 4}
        body.update(overrides)
        return self.post_ok(TASKS, body, self.auth)

    def _status(self, project_id: int, status: str):
        return self.client.post(f"{BASE}/{project_id}/status", json={"status": status}, headers=self.auth)

    def test_codes_are_generated(self) -> None:
        first = self._project()
        second = self._project(name="Outro")
        self.assertEqual(first["code"], "PRJ0001")
        self.assertEqual(second["code"], "PRJ0002")
        self.assertEqual(first["status"], "planning")

    def test_explicit_code_must_be_unique(self) -> None:
        self._project(code="erp-1")
        resp = self.client.post(BASE, json={"name": "X", "code": "ERP-1"}, headers=self.auth)
        self.assertEqual(resp.status_code, 409)

    def test_unknown_manager_is_404(self) -> None:
        resp = self.client.post(BASE, json={"name": "X", "manager_id": 999}, headers=self.auth)
        self.assertEqual(resp.status_code, 404)

    def test_create_then_get(self) -> None:
        created = self._project(planned_start="2025-01-01T00:00:00Z", planned_end="2025-06-30T00:00:00Z")
        fetched = self.client.get(f"{BASE}/{created['id']}", headers=self.auth).json()
        self.assertEqual(fetched, created)

    def test_status_workflow(self) -> None:
        project = self._project()
        resp = self._status(project["id"], "in_progress")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertIsNotNone(resp.json()["actual_start"])
        self.assertEqual(self._status(project["id"], "on_hold").json()["status"], "on_hold")
        self.assertEqual(self._status(project["id"], "cancelled").json()["status"], "cancelled")

        resp = self._status(project["id"], "in_progress")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["allowed"], [])

    def test_planning_cannot_jump_to_completed(self) -> None:
        project = self._project()
        resp = self._status(project["id"], "completed")
        self.assertEqual(resp.status_code, 409)
        self.assertIn("in_progress", resp.json()["allowed"])

    def test_close_refuses_open_tasks_unless_forced(self) -> None:
        project = self._project()
        task = self._task(project["id"])
        self._status(project["id"], "in_progress")

        resp = self.client.post(f"{BASE}/{project['id']}/close", headers=self.auth)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["open_tasks"], [task["id"]])

        resp = self.client.post(f"{BASE}/{project['id']}/close", json={"force": True}, headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["status"], "completed")
        cancelled = self.client.get(f"{TASKS}/{task['id']}", headers=self.auth).json()
        self.assertEqual(cancelled["status"], "cancelled")

    def test_close_from_planning_is_409(self) -> None:
        project = self._project()
        resp = self.client.post(f"{BASE}/{project['id']}/close", headers=self.auth)
        self.assertEqual(resp.status_code, 409)

    def test_completed_project_is_read_only(self) -> None:
        project = self._project()
        self._status(project["id"], "in_progress")
        self._status(project["id"], "completed")
        resp = self.client.put(f"{BASE}/{project['id']}", json={"name": "Novo"}, headers=self.auth)
        self.assertEqual(resp.status_code, 409)
        resp = self.client.post(TASKS, json={"project_id": project["id"], "name": "X"}, headers=self.auth)
        self.assertEqual(resp.status_code, 409)

    def test_metrics_and_budget(self) -> None:
        project = self._project()
        done = self._task(project["id"], estimated_hours=4)
        self._task(project["id"], estimated_hours=6)
        self.client.post(f"{TASKS}/{done['id']}/start", headers=self.auth)
        self.client.post(f"{TASKS}/{done['id']}/complete", json={"actual_hours": 5}, headers=self.auth)
        self.client.put(f"{BASE}/{project['id']}", json={"actual_cost": 1250}, headers=self.auth)

        metrics = self.client.get(f"{BASE}/{project['id']}/metrics", headers=self.auth).json()
        self.assertEqual(metrics["total_tasks"], 2)
        self.assertEqual(metrics["tasks_by_status"]["completed"], 1)
        self.assertEqual(metrics["tasks_by_status"]["pending"], 1)
        self.assertEqual(metrics["estimated_hours"], 10.0)
        self.assertEqual(metrics["actual_hours"], 5.0)
        self.assertEqual(metrics["time_efficiency_pct"], 200.0)
        self.assertEqual(metrics["progress_pct"], 50.0)
        self.assertEqual(metrics["progress_label"], "in_progress")
        self.assertEqual(metrics["budget_utilization_pct"], 125.0)

        budget = self.client.get(f"{BASE}/{project['id']}/budget", headers=self.auth).json()
        self.assertEqual(budget["balance"], -250.0)
        self.assertTrue(budget["over_budget"])

    def test_timeline_links_dependencies(self) -> None:
        project = self._project()
        first = self._task(project["id"], name="Projeto", planned_start="2025-01-01T00:00:00Z")
        second = self._task(project["id"], name="Execucao")
        self.post_ok(f"{TASKS}/{second['id']}/dependencies", {"depends_on_id": first["id"]}, self.auth)

        timeline = self.client.get(f"{BASE}/{project['id']}/timeline", headers=self.auth).json()
        self.assertEqual([t["text"] for t in timeline["tasks"]], ["Projeto", "Execucao"])
        self.assertEqual(timeline["tasks"][0]["start"], "2025-01-01T00:00:00Z")
        self.assertEqual(timeline["links"], [{"source": first["id"], "target": second["id"]}])

    def test_stats(self) -> None:
        self._project()
        self._project(name="Atrasado", planned_end="2020-01-01T00:00:00Z", budget=500)
        stats = self.client.get(f"{BASE}/stats", headers=self.auth).json()
        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["by_status"]["planning"], 2)
        self.assertEqual(stats["total_budget"], 1500.0)
        self.assertEqual(stats["overdue"], 1)

    def test_delete_in_progress_is_409(self) -> None:
        project = self._project()
        self._status(project["id"], "in_progress")
        self.assertEqual(self.client.delete(f"{BASE}/{project['id']}", headers=self.auth).status_code, 409)

    def test_delete_hides_tasks(self) -> None:
        project = self._project()
        task = self._task(project["id"])
        self.assertEqual(self.client.delete(f"{BASE}/{project['id']}", headers=self.auth).status_code, 204)
        self.assertEqual(self.client.get(f"{TASKS}/{task['id']}", headers=self.auth).status_code, 404)


    def test_null_for_required_field_is_422(self) -> None:
        project = self._project(client_name="Cliente A")
        for field in ("name", "budget"):
            resp = self.client.put(f"{BASE}/{project['id']}", json={field: None}, headers=self.auth)
            self.assertEqual(resp.status_code, 422, field)
        resp = self.client.put(
            f"{BASE}/{project['id']}", json={"client_name": None}, headers=self.auth
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()["client_name"])
        self.assertEqual(resp.json()["name"], "Linha de montagem")


if __name__ == "__main__":
    unittest.main()

"""Task endpoints: assignment, start/complete workflow and dependency graph rules."""

import unittest

from support import ApiTestCase

PROJECTS = "/api/pro/projects"
BASE = "/api/pro/tasks"


class TestTasks(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.auth = self.admin_headers()
        self.project = self.post_ok(PROJECTS, {"name": "Implantacao"}, self.auth)

    def _task(self, name: str = "Tarefa", project_id: int | None = None, **extra) -> dict:
        body = {"project_id": project_id or self.project["id"], "name": name}
        body.update(extra)
        return self.post_ok(BASE, body, self.auth)

    def _depend(self, task_id: int, depends_on_id: int):
        return self.client.post(
            f"{BASE}/{task_id}/dependencies", json={"depends_on_id": depends_on_id}, headers=self.auth
        )

    def test_create_then_get(self) -> None:
        created = self._task(priority="high")
        self.assertEqual(created["status"], "pending")
        self.assertEqual(created["progress"], 0)
        fetched = self.client.get(f"{BASE}/{created['id']}", headers=self.auth).json()
        self.assertEqual(fetched, created)

    def test_unknown_project_is_404(self) -> None:
        resp = self.client.post(BASE, json={"project_id": 999, "name": "X"}, headers=self.auth)
        self.assertEqual(resp.status_code, 404)

    def test_list_by_project(self) -> None:
        other = self.post_ok(PROJECTS, {"name": "Outro"}, self.auth)
        a = self._task("A")
        self._task("B", project_id=other["id"])
        resp = self.client.get(f"{BASE}/project/{self.project['id']}", headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([t["id"] for t in resp.json()], [a["id"]])

    def test_assign(self) -> None:
        task = self._task()
        user_id = self.make_user("dev@empresa.com")
        resp = self.client.post(f"{BASE}/{task['id']}/assign", json={"assignee_id": user_id}, headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["assignee_id"], user_id)

        resp = self.client.post(f"{BASE}/{task['id']}/assign", json={"assignee_id": 999}, headers=self.auth)
        self.assertEqual(resp.status_code, 404)

        filtered = self.client.get(f"{BASE}?assignee_id={user_id}", headers=self.auth).json()
        self.assertEqual(filtered["pagination"]["total"], 1)

    def test_start_moves_project_into_progress(self) -> None:
        task = self._task()
        resp = self.client.post(f"{BASE}/{task['id']}/start", headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["status"], "in_progress")
        project = self.client.get(f"{PROJECTS}/{self.project['id']}", headers=self.auth).json()
        self.assertEqual(project["status"], "in_progress")

    def test_complete_requires_in_progress(self) -> None:
        task = self._task()
        self.assertEqual(self.client.post(f"{BASE}/{task['id']}/complete", headers=self.auth).status_code, 409)
        self.client.post(f"{BASE}/{task['id']}/start", headers=self.auth)
        resp = self.client.post(f"{BASE}/{task['id']}/complete", json={"actual_hours": 3.5}, headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)
        done = resp.json()
        self.assertEqual(done["status"], "completed")
        self.assertEqual(done["progress"], 100)
        self.assertEqual(done["actual_hours"], 3.5)

    def test_unfinished_dependency_blocks_start(self) -> None:
        first = self._task("Primeira")
        second = self._task("Segunda")
        self.assertEqual(self._depend(second["id"], first["id"]).status_code, 201)

        resp = self.client.post(f"{BASE}/{second['id']}/start", headers=self.auth)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["blocking_tasks"], [first["id"]])

        self.client.post(f"{BASE}/{first['id']}/start", headers=self.auth)
        self.client.post(f"{BASE}/{first['id']}/complete", headers=self.auth)
        resp = self.client.post(f"{BASE}/{second['id']}/start", headers=self.auth)
        self.assertEqual(resp.status_code, 200, resp.text)

    def test_dependency_views(self) -> None:
        first = self._task("Primeira")
        second = self._task("Segunda")
        body = self._depend(second["id"], first["id"]).json()
        self.assertFalse(body["ready"])
        self.assertEqual(body["depends_on"][0]["depends_on_name"], "Primeira")

        blocking = self.client.get(f"{BASE}/{first['id']}/dependencies", headers=self.auth).json()
        self.assertEqual(blocking["blocking"], [second["id"]])
        self.assertTrue(blocking["ready"])

    def test_self_dependency_is_422(self) -> None:
        task = self._task()
        self.assertEqual(self._depend(task["id"], task["id"]).status_code, 422)

    def test_cross_project_dependency_is_422(self) -> None:
        other = self.post_ok(PROJECTS, {"name": "Outro"}, self.auth)
        a = self._task()
        b = self._task(project_id=other["id"])
        self.assertEqual(self._depend(a["id"], b["id"]).status_code, 422)

    def test_duplicate_dependency_is_409(self) -> None:
        a = self._task("A")
        b = self._task("B")
        self._depend(b["id"], a["id"])
        self.assertEqual(self._depend(b["id"], a["id"]).status_code, 409)

    def test_cycles_are_refused(self) -> None:
        a = self._task("A")
        b = self._task("B")
        c = self._task("C")
        self.assertEqual(self._depend(b["id"], a["id"]).status_code, 201)
        self.assertEqual(self._depend(c["id"], b["id"]).status_code, 201)
        resp = self._depend(a["id"], c["id"])
        self.assertEqual(resp.status_code, 409)
        self.assertIn("cycle", resp.json()["detail"])

    def test_cannot_delete_task_in_progress(self) -> None:
        task = self._task()
        self.client.post(f"{BASE}/{task['id']}/start", headers=self.auth)
        self.assertEqual(self.client.delete(f"{BASE}/{task['id']}", headers=self.auth).status_code, 409)

    def test_update_progress(self) -> None:
        task = self._task()
        resp = self.client.put(f"{BASE}/{task['id']}", json={"progress": 40}, headers=self.auth)
        self.assertEqual(resp.json()["progress"], 40)
        resp = self.client.put(f"{BASE}/{task['id']}", json={"progress": 140}, headers=self.auth)
        self.assertEqual(resp.status_code, 422)


    def test_null_for_required_field_is_422(self) -> None:
        task = self._task(description="Levantamento")
        resp = self.client.put(f"{BASE}/{task['id']}", json={"name": None}, headers=self.auth)
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "VALIDATION_ERROR")
        self.assertIn("name", resp.json()["errors"][0]["message"])
        resp = self.client.put(f"{BASE}/{task['id']}", json={"description": None}, headers=self.auth)
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()["description"])


if __name__ == "__main__":
    unittest.main()

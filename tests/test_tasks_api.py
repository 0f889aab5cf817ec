"""API tests for /api/tasks: visibility and per-field edit rules."""

import unittest

from api_support import ApiTestCase

from orientation.models import OrientationTask


class TestTaskRules(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.manager = self.make_user("manager1", ["manager"])
        self.lead = self.make_user("lead1", ["viewer"])
        self.trainee = self.make_user("trainee1", ["trainee"], full_name="Tia Trainee")
        self.other = self.make_user("trainee2", ["trainee"])
        self.make_program("p1")
        self.make_program("p2")
        self.make_manager_of(self.lead, "p1")
        # Mirrors the seeded grants, plus task writes for program leads.
        for perm in ("task.create", "task.update", "task.assign", "task.delete"):
            self.grant("manager", perm)
            self.grant("viewer", perm)
        self.grant("trainee", "task.create")
        self.grant("trainee", "task.update")
        self.task = self._make_task(self.trainee, "Badge pickup", program_id="p1")

    def _make_task(self, owner, label: str, **fields) -> OrientationTask:
        task = OrientationTask(
            user_id=owner.id,
            trainee=owner.full_name,
            label=label,
            done=False,
            deleted=False,
            **fields,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def _patch(self, user, body: dict, task_id: int | None = None):
        return self.client.patch(
            f"/api/tasks/{task_id or self.task.task_id}", json=body, headers=self.auth(user)
        )

    def test_trainee_toggles_own_done(self) -> None:
        resp = self._patch(self.trainee, {"done": True})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["done"])

    def test_trainee_cannot_edit_other_fields(self) -> None:
        for body in ({"label": "Renamed"}, {"done": True, "notes": "x"}, {"time": "09:00"}):
            with self.subTest(body=body):
                resp = self._patch(self.trainee, body)
                self.assertEqual(resp.status_code, 403)
                self.assertEqual(resp.json(), {"error": "forbidden"})
        self.assertFalse(self.fresh().get(OrientationTask, self.task.task_id).done)

    def test_trainee_cannot_touch_someone_elses_task(self) -> None:
        resp = self._patch(self.other, {"done": True})
        self.assertEqual(resp.status_code, 403)

    def test_program_manager_edits_any_field(self) -> None:
        resp = self._patch(
            self.lead,
            {"label": "Badge and parking", "time": "09:30", "scheduled_for": "2026-11-02"},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["label"], "Badge and parking")
        self.assertEqual(body["scheduled_time"], "09:30")
        self.assertEqual(body["scheduled_for"], "2026-11-02")

    def test_program_manager_cannot_move_task_to_unmanaged_program(self) -> None:
        resp = self._patch(self.lead, {"program_id": "p2"})
        self.assertEqual(resp.status_code, 403)

    def test_manager_role_moves_task(self) -> None:
        resp = self._patch(self.manager, {"program_id": "p2"})
        self.assertEqual(resp.json()["program_id"], "p2")

    def test_bad_date(self) -> None:
        resp = self._patch(self.manager, {"scheduled_for": "next tuesday"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid_scheduled_for"})

    def test_unknown_task(self) -> None:
        resp = self._patch(self.manager, {"done": True}, task_id=999)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "task_not_found"})

    def test_listing_visibility(self) -> None:
        self._make_task(self.other, "Other task", program_id="p2")
        resp = self.client.get("/api/tasks", headers=self.auth(self.trainee))
        self.assertEqual([t["label"] for t in resp.json()], ["Badge pickup"])
        # user_id is ignored for non-managers.
        resp = self.client.get(f"/api/tasks?user_id={self.other.id}", headers=self.auth(self.trainee))
        self.assertEqual([t["label"] for t in resp.json()], ["Badge pickup"])
        resp = self.client.get(f"/api/tasks?user_id={self.other.id}", headers=self.auth(self.manager))
        self.assertEqual([t["label"] for t in resp.json()], ["Other task"])

    def test_create_for_self_and_others(self) -> None:
        resp = self.client.post(
            "/api/tasks", json={"label": "Read handbook"}, headers=self.auth(self.trainee)
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["trainee"], "Tia Trainee")

        body = {"label": "Meet mentor", "user_id": self.trainee.id, "program_id": "p1"}
        self.assertEqual(
            self.client.post("/api/tasks", json=body, headers=self.auth(self.other)).status_code, 403
        )
        resp = self.client.post("/api/tasks", json=body, headers=self.auth(self.lead))
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["user_id"], self.trainee.id)

    def test_delete_and_restore(self) -> None:
        self.assertEqual(
            self.client.delete(f"/api/tasks/{self.task.task_id}", headers=self.auth(self.trainee)).status_code,
            403,
        )
        resp = self.client.delete(f"/api/tasks/{self.task.task_id}", headers=self.auth(self.lead))
        self.assertEqual(resp.json(), {"deleted": True})
        resp = self.client.get("/api/tasks", headers=self.auth(self.trainee))
        self.assertEqual(resp.json(), [])

        resp = self.client.post(f"/api/tasks/{self.task.task_id}/restore", headers=self.auth(self.trainee))
        self.assertFalse(resp.json()["deleted"])

class TestTaskPermissionGates(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.viewer = self.make_user("viewer1", ["viewer"])
        self.auditor = self.make_user("auditor1", ["auditor"])
        self.scheduler = self.make_user("scheduler1", ["manager"])
        self.admin = self.make_user("admin1", ["admin"])
        self.make_program("p1")
        self.grant("manager", "task.assign")
        self.task = OrientationTask(
            user_id=self.viewer.id,
            trainee="Viewer1",
            label="Badge pickup",
            done=False,
            deleted=False,
            program_id="p1",
        )
        self.db.add(self.task)
        self.db.commit()
        self.db.refresh(self.task)
        self.url = f"/api/tasks/{self.task.task_id}"

    def test_read_only_roles_cannot_create(self) -> None:
        for user in (self.viewer, self.auditor):
            with self.subTest(user=user.username):
                resp = self.client.post("/api/tasks", json={"label": "x"}, headers=self.auth(user))
                self.assertEqual(resp.status_code, 403)
                self.assertEqual(resp.json(), {"error": "forbidden"})
        self.assertEqual(self.fresh().query(OrientationTask).count(), 1)

    def test_admin_needs_no_grant(self) -> None:
        resp = self.client.post("/api/tasks", json={"label": "x"}, headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 201)

    def test_patch_needs_update_or_assign(self) -> None:
        resp = self.client.patch(self.url, json={"done": True}, headers=self.auth(self.viewer))
        self.assertEqual(resp.status_code, 403)

    def test_assign_only_changes_schedule(self) -> None:
        resp = self.client.patch(
            self.url,
            json={"scheduled_for": "2026-11-02", "time": "08:00"},
            headers=self.auth(self.scheduler),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["scheduled_for"], "2026-11-02")
        self.assertEqual(resp.json()["scheduled_time"], "08:00")
        for body in ({"label": "Renamed"}, {"done": True}, {"scheduled_for": "2026-11-03", "notes": "x"}):
            with self.subTest(body=body):
                resp = self.client.patch(self.url, json=body, headers=self.auth(self.scheduler))
                self.assertEqual(resp.status_code, 403)
        self.assertEqual(self.fresh().get(OrientationTask, self.task.task_id).label, "Badge pickup")

    def test_delete_needs_task_delete(self) -> None:
        resp = self.client.delete(self.url, headers=self.auth(self.scheduler))
        self.assertEqual(resp.status_code, 403)
        self.grant("manager", "task.delete")
        resp = self.client.delete(self.url, headers=self.auth(self.scheduler))
        self.assertEqual(resp.json(), {"deleted": True})



if __name__ == "__main__":
    unittest.main()

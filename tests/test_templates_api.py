"""API tests for /api/templates: pagination, validation codes, soft delete and lifecycle."""

import unittest

from api_support import ApiTestCase

from orientation.models import ProgramTaskTemplate


class TestTemplateListing(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("admin1", ["admin"])
        for week in (1, 2, 3):
            self.make_template(f"Week {week} task", week_number=week, sort_order=1)
        self.deleted = self.make_template("Old task", week_number=4)
        self.client.delete(f"/api/templates/{self.deleted.template_id}", headers=self.auth(self.admin))

    def test_paginated_response_has_meta(self) -> None:
        resp = self.client.get("/api/templates?limit=2&offset=1", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["meta"], {"total": 3, "limit": 2, "offset": 1})
        self.assertEqual([t["label"] for t in body["data"]], ["Week 2 task", "Week 3 task"])

    def test_bad_limit_and_offset_fall_back(self) -> None:
        resp = self.client.get("/api/templates?limit=abc&offset=-4", headers=self.auth(self.admin))
        self.assertEqual(resp.json()["meta"], {"total": 3, "limit": 25, "offset": 0})

    def test_limit_is_capped(self) -> None:
        resp = self.client.get("/api/templates?limit=5000", headers=self.auth(self.admin))
        self.assertEqual(resp.json()["meta"]["limit"], 100)

    def test_deleted_hidden_unless_requested(self) -> None:
        resp = self.client.get("/api/templates?include_deleted=true", headers=self.auth(self.admin))
        body = resp.json()
        self.assertEqual(body["meta"]["total"], 4)
        deleted = [t for t in body["data"] if t["template_id"] == self.deleted.template_id]
        self.assertIsNotNone(deleted[0]["deleted_at"])

    def test_unknown_status_filter_is_rejected(self) -> None:
        resp = self.client.get("/api/templates?status=invalid", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid_status"})

    def test_status_filter(self) -> None:
        self.make_template("Published task", status="published")
        resp = self.client.get("/api/templates?status=published", headers=self.auth(self.admin))
        self.assertEqual([t["label"] for t in resp.json()["data"]], ["Published task"])

    def test_status_filter_ignores_case_and_whitespace(self) -> None:
        self.make_template("Published task", status="published")
        for value in ("Published", "%20PUBLISHED%20"):
            with self.subTest(value=value):
                resp = self.client.get(f"/api/templates?status={value}", headers=self.auth(self.admin))
                self.assertEqual(resp.status_code, 200)
                self.assertEqual([t["label"] for t in resp.json()["data"]], ["Published task"])

    def test_include_deleted_accepts_yes_y_on(self) -> None:
        for value in ("yes", "Y", "on", "1"):
            with self.subTest(value=value):
                resp = self.client.get(f"/api/templates?include_deleted={value}", headers=self.auth(self.admin))
                self.assertEqual(resp.json()["meta"]["total"], 4)
        resp = self.client.get("/api/templates?include_deleted=no", headers=self.auth(self.admin))
        self.assertEqual(resp.json()["meta"]["total"], 3)

    def test_search_escapes_wildcards(self) -> None:
        self.make_template("100% done")
        resp = self.client.get("/api/templates?search=%25", headers=self.auth(self.admin))
        self.assertEqual([t["label"] for t in resp.json()["data"]], ["100% done"])

    def test_unauthenticated_is_401(self) -> None:
        resp = self.client.get("/api/templates")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "unauthenticated"})


class TestTemplateWrites(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.manager = self.make_user("manager1", ["manager"])
        self.viewer = self.make_user("viewer1", ["viewer"])

    def _create(self, payload: dict) -> object:
        return self.client.post("/api/templates", json=payload, headers=self.auth(self.manager))

    def test_create_defaults_to_draft(self) -> None:
        resp = self._create({"label": "  Meet your mentor ", "week_number": "2", "required": "true"})
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["label"], "Meet your mentor")
        self.assertEqual(body["week_number"], 2)
        self.assertTrue(body["required"])
        self.assertEqual(body["status"], "draft")

    def test_create_validation_codes(self) -> None:
        cases = [
            ({"label": ""}, "invalid_label"),
            ({"week_number": 1}, "invalid_label"),
            ({"label": "x", "week_number": "abc"}, "invalid_week_number"),
            ({"label": "x", "sort_order": "abc"}, "invalid_sort_order"),
            ({"label": "x", "due_offset_days": 1.5}, "invalid_due_offset_days"),
            ({"label": "x", "status": "archived"}, "invalid_status"),
        ]
        for payload, code in cases:
            with self.subTest(payload=payload):
                resp = self._create(payload)
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json(), {"error": code})
        self.assertEqual(self.fresh().query(ProgramTaskTemplate).count(), 0)

    def test_viewer_cannot_create(self) -> None:
        resp = self.client.post("/api/templates", json={"label": "x"}, headers=self.auth(self.viewer))
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json(), {"error": "forbidden"})

    def test_patch_updates_only_given_fields(self) -> None:
        template = self.make_template("Tour", week_number=1, notes="bring badge")
        resp = self.client.patch(
            f"/api/templates/{template.template_id}",
            json={"week_number": 3},
            headers=self.auth(self.manager),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["week_number"], 3)
        self.assertEqual(resp.json()["notes"], "bring badge")

    def test_patch_rejects_archived_status(self) -> None:
        template = self.make_template("Tour")
        resp = self.client.patch(
            f"/api/templates/{template.template_id}",
            json={"status": "archived"},
            headers=self.auth(self.manager),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid_status"})

    def test_empty_patch_is_rejected(self) -> None:
        template = self.make_template("Tour")
        resp = self.client.patch(
            f"/api/templates/{template.template_id}", json={}, headers=self.auth(self.manager)
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "no_fields"})

    def test_patch_missing_template_is_404(self) -> None:
        resp = self.client.patch("/api/templates/999", json={"label": "x"}, headers=self.auth(self.manager))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "template_not_found"})

    def test_soft_delete_and_restore(self) -> None:
        template = self.make_template("Tour")
        url = f"/api/templates/{template.template_id}"
        resp = self.client.delete(url, headers=self.auth(self.manager))
        self.assertEqual(resp.json(), {"deleted": True})
        self.assertEqual(self.client.get(url, headers=self.auth(self.manager)).status_code, 404)
        self.assertEqual(
            self.client.get(f"{url}?include_deleted=true", headers=self.auth(self.manager)).status_code,
            200,
        )
        # A second delete finds nothing live to delete.
        self.assertEqual(self.client.delete(url, headers=self.auth(self.manager)).status_code, 404)

        resp = self.client.post(f"{url}/restore", headers=self.auth(self.manager))
        self.assertEqual(resp.json(), {"restored": True})
        self.assertIsNone(self.fresh().get(ProgramTaskTemplate, template.template_id).deleted_at)

    def test_lifecycle_transitions(self) -> None:
        template = self.make_template("Tour")
        url = f"/api/templates/{template.template_id}"
        resp = self.client.post(f"{url}/publish", headers=self.auth(self.manager))
        self.assertEqual(resp.json()["status"], "published")
        resp = self.client.post(f"{url}/deprecate", headers=self.auth(self.manager))
        self.assertEqual(resp.json()["status"], "deprecated")
        resp = self.client.post(f"{url}/publish", headers=self.auth(self.viewer))
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()

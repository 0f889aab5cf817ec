"""API tests for the audit log reader."""

import unittest

from api_support import ApiTestCase

from orientation.models import AuditLog


class TestAuditLog(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.auditor = self.make_user("auditor1", ["auditor"])
        self.viewer = self.make_user("viewer1", ["viewer"])
        # Written by the database trigger in PostgreSQL; inserted directly here.
        self.db.add_all(
            [
                AuditLog(
                    table_name="programs",
                    operation="INSERT",
                    record_id="p1",
                    new_data={"program_id": "p1", "status": "draft"},
                    changed_by="admin1",
                ),
                AuditLog(
                    table_name="programs",
                    operation="UPDATE",
                    record_id="p1",
                    old_data={"status": "draft"},
                    new_data={"status": "published"},
                    changed_by="admin1",
                ),
                AuditLog(table_name="users", operation="UPDATE", record_id="7"),
            ]
        )
        self.db.commit()

    def test_auditor_reads_newest_first(self) -> None:
        resp = self.client.get("/api/audit?table_name=programs", headers=self.auth(self.auditor))
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["meta"]["total"], 2)
        self.assertEqual([e["operation"] for e in body["data"]], ["UPDATE", "INSERT"])
        self.assertEqual(body["data"][0]["new_data"], {"status": "published"})

    def test_record_filter(self) -> None:
        resp = self.client.get("/api/audit?record_id=7", headers=self.auth(self.auditor))
        self.assertEqual([e["table_name"] for e in resp.json()["data"]], ["users"])

    def test_viewer_is_refused(self) -> None:
        resp = self.client.get("/api/audit", headers=self.auth(self.viewer))
        self.assertEqual(resp.status_code, 403)

    def test_auditor_has_no_program_access_without_grant(self) -> None:
        resp = self.client.get("/api/programs", headers=self.auth(self.auditor))
        self.assertEqual(resp.status_code, 403)
        self.grant("auditor", "program.read")
        resp = self.client.get("/api/programs", headers=self.auth(self.auditor))
        self.assertEqual(resp.status_code, 200)


if __name__ == "__main__":
    unittest.main()

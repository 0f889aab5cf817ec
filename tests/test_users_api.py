"""API tests for user administration, role assignment and the /me profile."""

import unittest

from api_support import ApiTestCase

from orientation.models import OrientationTask, ProgramMembership, User


class TestRoleAssignment(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("admin1", ["admin"])
        self.manager = self.make_user("manager1", ["manager"])
        self.trainee = self.make_user("trainee1", ["trainee"])

    def _set_roles(self, actor, target, roles, method: str = "post"):
        return self.client.request(
            method.upper(),
            f"/api/users/{target.id}/roles",
            json={"roles": roles},
            headers=self.auth(actor),
        )

    def test_admin_lists_users_with_roles(self) -> None:
        resp = self.client.get("/api/users?limit=2", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["meta"], {"total": 3, "limit": 2, "offset": 0})
        self.assertEqual(body["data"][0]["username"], "admin1")
        self.assertEqual(body["data"][0]["roles"], ["admin"])
        self.assertNotIn("password_hash", body["data"][0])

    def test_user_list_filters(self) -> None:
        resp = self.client.get("/api/users?role=trainee", headers=self.auth(self.admin))
        self.assertEqual([u["username"] for u in resp.json()["data"]], ["trainee1"])
        resp = self.client.get("/api/users?query=MANAG", headers=self.auth(self.admin))
        self.assertEqual([u["username"] for u in resp.json()["data"]], ["manager1"])

    def test_trainee_cannot_list_users(self) -> None:
        resp = self.client.get("/api/users", headers=self.auth(self.trainee))
        self.assertEqual(resp.status_code, 403)

    def test_admin_replaces_roles(self) -> None:
        resp = self._set_roles(self.admin, self.trainee, ["manager", "viewer"], method="put")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"id": self.trainee.id, "roles": ["manager", "viewer"]})

    def test_admin_can_clear_roles(self) -> None:
        resp = self._set_roles(self.admin, self.trainee, [])
        self.assertEqual(resp.json()["roles"], [])

    def test_unknown_role_is_rejected(self) -> None:
        resp = self._set_roles(self.admin, self.trainee, ["wizard"])
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid_roles"})

    def test_manager_may_grant_viewer(self) -> None:
        resp = self._set_roles(self.manager, self.trainee, ["viewer", "trainee"])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["roles"], ["trainee", "viewer"])

    def test_manager_may_not_grant_admin_or_manager(self) -> None:
        for roles in (["admin"], ["viewer", "manager"]):
            with self.subTest(roles=roles):
                resp = self._set_roles(self.manager, self.trainee, roles)
                self.assertEqual(resp.status_code, 403)
                self.assertEqual(resp.json(), {"error": "forbidden"})
        self.assertEqual([r.role_key for r in self.fresh().get(User, self.trainee.id).roles], ["trainee"])

    def test_manager_keeps_locked_roles(self) -> None:
        resp = self._set_roles(self.manager, self.admin, ["viewer"])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["roles"], ["admin", "viewer"])

    def test_trainee_cannot_set_roles(self) -> None:
        resp = self._set_roles(self.trainee, self.manager, ["viewer"])
        self.assertEqual(resp.status_code, 403)

    def test_unknown_user_is_404(self) -> None:
        resp = self.client.post("/api/users/999/roles", json={"roles": []}, headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "user_not_found"})

    def test_actions_for_manager(self) -> None:
        resp = self.client.get(f"/api/users/{self.admin.id}/actions", headers=self.auth(self.manager))
        body = resp.json()
        self.assertTrue(body["manager_only"])
        self.assertEqual(body["toggleable_roles"], ["viewer", "trainee"])
        self.assertEqual(body["locked_roles"], ["admin"])
        self.assertFalse(body["can_deactivate"])

    def test_roles_catalogue(self) -> None:
        resp = self.client.get("/api/roles", headers=self.auth(self.trainee))
        self.assertEqual(
            [r["role_key"] for r in resp.json()],
            ["admin", "auditor", "manager", "trainee", "viewer"],
        )


class TestLegacyRbacRoutes(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("admin1", ["admin"])
        self.manager = self.make_user("manager1", ["manager"])

    def test_admin_lists_all_users(self) -> None:
        resp = self.client.get("/rbac/users", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(sorted(u["username"] for u in resp.json()), ["admin1", "manager1"])

    def test_manager_is_refused(self) -> None:
        resp = self.client.get("/rbac/users", headers=self.auth(self.manager))
        self.assertEqual(resp.status_code, 403)
        resp = self.client.patch(
            f"/rbac/users/{self.admin.id}/roles", json={"roles": ["viewer"]}, headers=self.auth(self.manager)
        )
        self.assertEqual(resp.status_code, 403)

    def test_admin_patches_roles(self) -> None:
        resp = self.client.patch(
            f"/rbac/users/{self.manager.id}/roles",
            json={"roles": ["viewer"]},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.json(), {"id": self.manager.id, "roles": ["viewer"]})


class TestUserStatus(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("admin1", ["admin"])
        self.manager = self.make_user("manager1", ["manager"])
        self.trainee = self.make_user("trainee1", ["trainee"])

    def test_deactivate_blocks_existing_tokens(self) -> None:
        headers = self.auth(self.trainee)
        self.assertEqual(self.client.get("/me", headers=headers).status_code, 200)
        resp = self.client.post(
            f"/api/users/{self.trainee.id}/deactivate",
            json={"reason": "left the unit"},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.json()["status"], "suspended")
        resp = self.client.get("/me", headers=headers)
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json(), {"error": "account_disabled"})

        resp = self.client.post(f"/api/users/{self.trainee.id}/reactivate", headers=self.auth(self.admin))
        self.assertEqual(resp.json()["status"], "active")
        self.assertEqual(self.client.get("/me", headers=headers).status_code, 200)

    def test_archive(self) -> None:
        resp = self.client.post(f"/api/users/{self.trainee.id}/archive", headers=self.auth(self.admin))
        self.assertEqual(resp.json()["status"], "archived")

    def test_manager_cannot_change_status(self) -> None:
        resp = self.client.post(f"/api/users/{self.trainee.id}/deactivate", headers=self.auth(self.manager))
        self.assertEqual(resp.status_code, 403)

    def test_admin_creates_user(self) -> None:
        resp = self.client.post(
            "/api/users",
            json={"username": "newbie", "password": "longenough", "roles": ["trainee"]},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["roles"], ["trainee"])
        resp = self.client.post(
            "/api/users", json={"username": "newbie"}, headers=self.auth(self.admin)
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json(), {"error": "already_exists"})


class TestProgramAssignment(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.manager = self.make_user("manager1", ["manager"])
        self.trainee = self.make_user("trainee1", ["trainee"])
        self.make_program("p1", status="published")
        template = self.make_template("Badge pickup", week_number=1)
        admin = self.make_user("admin1", ["admin"])
        self.client.post(
            "/api/programs/p1/templates/attach",
            json={"template_id": template.template_id},
            headers=self.auth(admin),
        )

    def test_assign_and_unassign(self) -> None:
        url = f"/api/users/{self.trainee.id}/programs"
        resp = self.client.post(url, json={"program_id": "p1"}, headers=self.auth(self.manager))
        self.assertEqual(resp.json(), {"ok": True, "created": 1})
        resp = self.client.get(url, headers=self.auth(self.manager))
        self.assertEqual(resp.json(), {"user_id": self.trainee.id, "program_ids": ["p1"]})

        resp = self.client.delete(f"{url}/p1", headers=self.auth(self.manager))
        self.assertEqual(resp.json(), {"ok": True, "removed": 1})
        db = self.fresh()
        self.assertEqual(db.query(ProgramMembership).filter_by(role="trainee").count(), 0)
        self.assertTrue(db.query(OrientationTask).one().deleted)

    def test_assign_unknown_program(self) -> None:
        resp = self.client.post(
            f"/api/users/{self.trainee.id}/programs",
            json={"program_id": "nope"},
            headers=self.auth(self.manager),
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "program_not_found"})

    def test_trainee_cannot_assign(self) -> None:
        resp = self.client.post(
            f"/api/users/{self.trainee.id}/programs",
            json={"program_id": "p1"},
            headers=self.auth(self.trainee),
        )
        self.assertEqual(resp.status_code, 403)


class TestProfile(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.make_user("viewer1", ["viewer"], email="v1@example.org", organization="North")
        self.other = self.make_user("viewer2", ["viewer"], email="v2@example.org")

    def test_get_me(self) -> None:
        self.grant("viewer", "program.read")
        resp = self.client.get("/api/me", headers=self.auth(self.user))
        body = resp.json()
        self.assertEqual(body["username"], "viewer1")
        self.assertEqual(body["roles"], ["viewer"])
        self.assertEqual(body["perms"], ["program.read"])
        self.assertEqual(body["organization"], "North")

    def test_patch_trims_and_clears_organization(self) -> None:
        resp = self.client.patch(
            "/me",
            json={"name": "  Vera Viewer ", "email": " vera@example.org ", "organization": "   "},
            headers=self.auth(self.user),
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["name"], "Vera Viewer")
        self.assertEqual(body["email"], "vera@example.org")
        self.assertIsNone(body["organization"])

    def test_duplicate_email_is_conflict(self) -> None:
        resp = self.client.patch("/me", json={"email": "v2@example.org"}, headers=self.auth(self.user))
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json(), {"error": "already_exists"})

    def test_duplicate_username_is_conflict(self) -> None:
        resp = self.client.patch("/me", json={"username": "viewer2"}, headers=self.auth(self.user))
        self.assertEqual(resp.status_code, 409)

    def test_invalid_values(self) -> None:
        cases = [
            ({"email": "not-an-email"}, "invalid_email"),
            ({"username": "a b"}, "invalid_username"),
            ({"name": "  "}, "invalid_name"),
        ]
        for payload, code in cases:
            with self.subTest(payload=payload):
                resp = self.client.patch("/me", json=payload, headers=self.auth(self.user))
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json(), {"error": code})


if __name__ == "__main__":
    unittest.main()

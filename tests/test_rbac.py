"""Unit tests for orientation.core.rbac: static policy lookups and role-assignment limits."""

import unittest
from types import SimpleNamespace

from orientation.core.rbac import (
    ALL_ROLES,
    MANAGER_EDITABLE_ROLES,
    POLICY,
    action_availability,
    can,
    disallowed_role_assignments,
    has_role,
    is_allowed,
    is_manager_only,
    locked_roles,
    permission_key,
)


def _user(*roles: str, status: str = "active") -> SimpleNamespace:
    return SimpleNamespace(roles=list(roles), status=status)


class TestCan(unittest.TestCase):
    """can(user, action, resource) is a plain table lookup."""

    def test_admin_can_archive_program(self) -> None:
        self.assertTrue(can(_user("admin"), "archive", "program"))

    def test_manager_cannot_archive_program(self) -> None:
        self.assertFalse(can(_user("manager"), "archive", "program"))

    def test_any_listed_role_is_enough(self) -> None:
        self.assertTrue(can(_user("viewer", "manager"), "publish", "program"))

    def test_unknown_resource_or_action_is_denied(self) -> None:
        self.assertFalse(can(_user("admin"), "fly", "program"))
        self.assertFalse(can(_user("admin"), "read", "spaceship"))

    def test_no_roles_is_denied(self) -> None:
        self.assertFalse(can(_user(), "read", "template"))

    def test_no_hierarchy_auditor_gets_only_audit_read(self) -> None:
        auditor = _user("auditor")
        self.assertTrue(can(auditor, "read", "audit"))
        self.assertFalse(can(auditor, "read", "program"))

    def test_every_action_lists_admin(self) -> None:
        for resource, actions in POLICY.items():
            for action, roles in actions.items():
                self.assertIn("admin", roles, f"{resource}.{action}")


class TestIsAllowed(unittest.TestCase):
    """Permission grants from the database extend the static table."""

    def test_db_permission_grants_access(self) -> None:
        auditor = _user("auditor")
        self.assertTrue(is_allowed(auditor, "read", "program", perms=["program.read"]))

    def test_unrelated_permission_does_not_grant(self) -> None:
        self.assertFalse(is_allowed(_user("trainee"), "delete", "template", perms=["task.update"]))

    def test_task_writes_need_a_grant_below_admin(self) -> None:
        manager = _user("manager")
        self.assertFalse(is_allowed(manager, "create", "task"))
        self.assertTrue(is_allowed(manager, "create", "task", perms=["task.create"]))
        self.assertTrue(is_allowed(_user("admin"), "delete", "task"))

    def test_permission_key_format(self) -> None:
        self.assertEqual(permission_key("template", "update"), "template.update")


class TestRoleAssignmentLimits(unittest.TestCase):
    def test_admin_may_assign_anything(self) -> None:
        self.assertEqual(disallowed_role_assignments(_user("admin"), ["admin", "manager"]), [])

    def test_manager_may_assign_viewer_and_trainee_only(self) -> None:
        manager = _user("manager")
        self.assertEqual(disallowed_role_assignments(manager, ["viewer", "trainee"]), [])
        self.assertEqual(
            disallowed_role_assignments(manager, ["viewer", "admin", "manager"]),
            ["admin", "manager"],
        )

    def test_others_may_assign_nothing(self) -> None:
        self.assertEqual(disallowed_role_assignments(_user("viewer"), ["trainee"]), ["trainee"])

    def test_locked_roles_for_manager_only(self) -> None:
        self.assertTrue(is_manager_only(_user("manager")))
        self.assertFalse(is_manager_only(_user("manager", "admin")))
        self.assertEqual(locked_roles(_user("manager"), ["admin", "trainee"]), ["admin"])
        self.assertEqual(locked_roles(_user("admin"), ["admin", "trainee"]), [])

    def test_has_role(self) -> None:
        self.assertTrue(has_role(_user("viewer"), "admin", "viewer"))
        self.assertFalse(has_role(_user("viewer"), "admin"))


class TestActionAvailability(unittest.TestCase):
    """Server-side version of the user administration button gating."""

    def test_admin_on_active_user(self) -> None:
        result = action_availability(_user("admin"), _user("trainee"))
        self.assertTrue(result.can_invite)
        self.assertTrue(result.can_edit)
        self.assertTrue(result.can_deactivate)
        self.assertFalse(result.can_reactivate)
        self.assertTrue(result.can_archive)
        self.assertEqual(result.toggleable_roles, list(ALL_ROLES))
        self.assertEqual(result.locked_roles, [])
        self.assertFalse(result.manager_only)

    def test_admin_on_suspended_user(self) -> None:
        result = action_availability(_user("admin"), _user("trainee", status="suspended"))
        self.assertFalse(result.can_deactivate)
        self.assertTrue(result.can_reactivate)

    def test_manager_gets_limited_toggles_and_locks(self) -> None:
        result = action_availability(_user("manager"), _user("admin", "viewer"))
        self.assertFalse(result.can_invite)
        self.assertFalse(result.can_edit)
        self.assertTrue(result.can_manage_roles)
        self.assertTrue(result.can_assign_programs)
        self.assertFalse(result.can_deactivate)
        self.assertEqual(result.toggleable_roles, list(MANAGER_EDITABLE_ROLES))
        self.assertEqual(result.locked_roles, ["admin"])
        self.assertTrue(result.manager_only)

    def test_viewer_gets_nothing(self) -> None:
        result = action_availability(_user("viewer"), _user("trainee"))
        self.assertFalse(result.can_manage_roles)
        self.assertEqual(result.toggleable_roles, [])

    def test_archived_target_cannot_be_archived_again(self) -> None:
        result = action_availability(_user("admin"), _user("viewer", status="archived"))
        self.assertFalse(result.can_archive)

    def test_without_target_only_global_actions(self) -> None:
        result = action_availability(_user("admin"))
        self.assertTrue(result.can_invite)
        self.assertFalse(result.can_deactivate)
        self.assertEqual(result.locked_roles, [])


if __name__ == "__main__":
    unittest.main()

"""
Create a local user (e.g. the first admin). Run from project root:
  python -m orientation.scripts.create_user USERNAME PASSWORD [role ...]
Example:
  python -m orientation.scripts.create_user admin your-secure-password admin
"""
import argparse
import logging
import sys

from orientation.core.database import session_scope
from orientation.core.errors import ServiceError
from orientation.core.rbac import ROLE_KEYS
from orientation.services import users as users_service

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Create an orientation admin user.")
    parser.add_argument("username", help="Username (3-32 chars: letters, digits, . _ -)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument(
        "roles", nargs="*", metavar="role", help=f"Roles to grant (default: admin; one of {', '.join(ROLE_KEYS)})"
    )
    parser.add_argument("--email", default=None)
    parser.add_argument("--full-name", default=None)
    parser.add_argument("--organization", default=None)
    args = parser.parse_args()
    roles = args.roles or ["admin"]
    unknown = [r for r in roles if r not in ROLE_KEYS]
    if unknown:
        parser.error(f"unknown role(s): {', '.join(unknown)}")

    try:
        with session_scope() as db:
            user = users_service.create_user(
                db,
                username=args.username,
                password=args.password,
                email=args.email,
                full_name=args.full_name,
                organization=args.organization,
                roles=roles,
            )
            user_id = user.id
    except ServiceError as e:
        print(f"Could not create user '{args.username}': {e.code}", file=sys.stderr)
        return 1
    print(f"Created user '{args.username}' (id {user_id}) with roles {', '.join(roles)}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

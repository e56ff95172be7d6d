#!/usr/bin/env python
"""CLI utility to seed the role/permission catalog."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from fundauth.core.config import get_settings
from fundauth.core.database import session_scope
from fundauth.services.bootstrap import BootstrapService
from fundauth.services.errors import AuthzError


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create missing RBAC permissions and roles.")
    parser.add_argument(
        "--admin-user-id",
        default=None,
        help="Optional user id to grant the super-admin role after seeding.",
    )
    parser.add_argument("--actor-id", default=None, help="Actor recorded in the audit log (default: system actor).")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    actor_id = args.actor_id or get_settings().system_actor_id

    try:
        with session_scope() as session:
            service = BootstrapService(session)
            result = service.run(actor_id=actor_id)
            granted = None
            if args.admin_user_id:
                granted = service.grant_super_admin(args.admin_user_id, actor_id=actor_id)
    except AuthzError as exc:
        logging.error("RBAC seeding failed: %s", exc)
        return 1

    logging.info(
        "RBAC seeding finished: %s permissions created, %s roles created, %s links assigned, %s skipped, %s failed",
        result.permissions_created,
        result.roles_created,
        result.role_permissions_assigned,
        result.skipped_assignments,
        result.failed_assignments,
    )
    if granted is not None:
        logging.info(
            "Super-admin role %s for %s",
            "granted" if granted else "already held",
            args.admin_user_id,
        )
    return 1 if result.failed_assignments else 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from lookprice.core.config import DEV_BOOTSTRAP_ALLOW, IS_DEV  # noqa: E402
from lookprice.core.database import SessionLocal, engine  # noqa: E402
from lookprice.models.user import ALL_ROLES, ROLE_SUPERADMIN  # noqa: E402
from lookprice.services.superadmin_bootstrap import (  # noqa: E402
    ensure_users_table,
    upsert_user,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update a LookPrice user from the command line.")
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--password", help="User password (kept as-is for existing users when omitted)")
    parser.add_argument(
        "--role",
        default=ROLE_SUPERADMIN,
        choices=sorted(ALL_ROLES),
        help="User role",
    )
    parser.add_argument("--store", type=int, help="Store ID (required for store roles)")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run without DEV_BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not DEV_BOOTSTRAP_ALLOW and not args.force:
        print("Bootstrap disabled. Set DEV_BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    try:
        ensure_users_table(engine)
    except RuntimeError as exc:
        print(str(exc))
        return 1

    db = SessionLocal()
    try:
        user, created = upsert_user(
            db,
            email=args.email,
            role=args.role,
            store_id=args.store,
            password=args.password,
        )
        summary = f"role={user.role} store={user.store_id} email={user.email}"
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"User {action}: {summary}")
    if IS_DEV:
        password_info = args.password if args.password else "<unchanged>"
        print(f"DEV summary -> {summary} | password: {password_info}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

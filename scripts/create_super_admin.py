#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from sqlalchemy import inspect  # noqa: E402

from brigade.core.config import SUPER_ADMIN_EMAIL, SUPER_ADMIN_NAME, SUPER_ADMIN_PASSWORD  # noqa: E402
from brigade.core.database import SessionLocal, engine  # noqa: E402
from brigade.services.bootstrap import upsert_super_admin  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or refresh the platform super-admin.")
    parser.add_argument("--email", default=SUPER_ADMIN_EMAIL, help="Super-admin email (default: SUPER_ADMIN_EMAIL)")
    parser.add_argument("--password", default=SUPER_ADMIN_PASSWORD or None, help="Password or an existing bcrypt hash")
    parser.add_argument("--name", default=SUPER_ADMIN_NAME, help="Display name")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not args.email:
        print("An email is required (--email or SUPER_ADMIN_EMAIL).")
        return 1

    if not inspect(engine).has_table("users"):
        print("Table users not found. Run `alembic upgrade head` first.")
        return 1

    db = SessionLocal()
    try:
        admin, created = upsert_super_admin(db, email=args.email, name=args.name, password=args.password)
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Super-admin {action}: id={admin.id} email={admin.email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

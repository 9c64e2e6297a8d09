#!/usr/bin/env python3
"""Create or update an administrative user out of band."""

from __future__ import annotations

import argparse
import sys

from portfolio_api.config import settings
from portfolio_api.database import init_db
from portfolio_api.services.users import user_store


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed an admin or editor account for the admin panel."
    )
    parser.add_argument(
        "--email",
        default=settings.seed_email,
        help="Account email (default: ADMIN_EMAIL)",
    )
    parser.add_argument(
        "--password",
        default=settings.seed_password,
        help="Account password (default: ADMIN_PASSWORD)",
    )
    parser.add_argument(
        "--name",
        default=settings.seed_name,
        help="Display name (default: ADMIN_NAME)",
    )
    parser.add_argument(
        "--role",
        choices=["admin", "editor"],
        default="admin",
        help="Account role (default: admin)",
    )
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Rewrite the password when the account already exists.",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    if not args.email or not args.password:
        print("Both --email and --password are required.", file=sys.stderr)
        return 2
    if len(args.password) < settings.min_password_length:
        print(
            f"Password must be at least {settings.min_password_length} characters.",
            file=sys.stderr,
        )
        return 2

    init_db()
    existing = user_store.find_by_email(args.email)
    if existing is not None:
        if args.reset_password:
            user_store.update_password(existing.id, args.password)
            print(f"Password reset for {existing.email}")
        if args.role == "admin":
            user_store.ensure_admin(args.email, args.password, args.name)
        print(f"User already exists: {existing.email} (id={existing.id})")
        return 0

    if args.role == "admin":
        entry, _ = user_store.ensure_admin(args.email, args.password, args.name)
    else:
        entry = user_store.create_user(args.email, args.password, args.name, role="editor")
    print(f"Created {entry.role} {entry.email} (id={entry.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

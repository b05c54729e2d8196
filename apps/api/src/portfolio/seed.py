"""Bootstrap the single admin account.

Usage: python -m portfolio.seed <username> <password>

Any other admin accounts are removed and their posts reassigned to this one,
so re-running the command rotates the credentials without losing content.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine, text

from portfolio.auth.db import remove_other_admin_users, upsert_admin_user
from portfolio.auth.passwords import WeakPasswordError, hash_password, verify_password
from portfolio.config import DATABASE_URL


def _repo_root() -> Path:
    # apps/api/src/portfolio/seed.py -> repo root is 4 parents up
    return Path(__file__).resolve().parents[4]


def _database_url() -> str:
    load_dotenv(_repo_root() / ".env")
    return os.getenv("DATABASE_URL", DATABASE_URL)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: python -m portfolio.seed <username> <password>", file=sys.stderr)
        return 1

    username, password = args[0].strip(), args[1]
    if not username:
        print("Username must not be empty.", file=sys.stderr)
        return 1

    try:
        password_hash = hash_password(password)
    except WeakPasswordError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    engine = create_engine(_database_url(), hide_parameters=True)
    try:
        with engine.begin() as conn:
            user = upsert_admin_user(conn, username=username, password_hash=password_hash)
            removed = remove_other_admin_users(conn, keep_id=user.id)

        with engine.begin() as conn:
            stored = conn.execute(
                text("SELECT password_hash FROM admin_users WHERE id = :id"),
                {"id": user.id},
            ).scalar()
    finally:
        engine.dispose()

    if stored is None or not verify_password(password, stored):
        print("Admin user was written but the password could not be verified.", file=sys.stderr)
        return 1

    if removed:
        print(f"Removed {removed} existing admin user(s).")
    print(f"Admin user {user.username!r} created with id {user.id}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

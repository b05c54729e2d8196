from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Connection

from portfolio.auth.passwords import verify_password
from portfolio.db import get_engine


class InvalidCredentialsError(ValueError):
    pass


@dataclass
class AdminUser:
    id: UUID
    username: str


def _normalize(username: str) -> str:
    return username.strip()


def upsert_admin_user(conn: Connection, *, username: str, password_hash: str) -> AdminUser:
    q = text(
        """
        INSERT INTO admin_users (username, password_hash)
        VALUES (:username, :password_hash)
        ON CONFLICT (username) DO UPDATE SET password_hash = EXCLUDED.password_hash
        RETURNING id, username
        """
    )
    row = conn.execute(q, {"username": _normalize(username), "password_hash": password_hash}).mappings().one()
    return AdminUser(id=row["id"], username=row["username"])


def remove_other_admin_users(conn: Connection, *, keep_id: UUID) -> int:
    """Delete every admin except ``keep_id``, handing their posts to it first."""
    conn.execute(
        text("UPDATE post SET author_id = :keep_id WHERE author_id <> :keep_id"),
        {"keep_id": keep_id},
    )
    result = conn.execute(text("DELETE FROM admin_users WHERE id <> :keep_id"), {"keep_id": keep_id})
    return int(result.rowcount or 0)


def authenticate_admin(*, username: str, password: str) -> AdminUser:
    engine = get_engine()
    q = text(
        """
        SELECT id, username, password_hash
        FROM admin_users
        WHERE username = :username
        """
    )

    with engine.begin() as conn:
        row = conn.execute(q, {"username": _normalize(username)}).mappings().first()

    if not row:
        raise InvalidCredentialsError("Invalid credentials")

    if not verify_password(password, row["password_hash"]):
        raise InvalidCredentialsError("Invalid credentials")

    return AdminUser(id=row["id"], username=row["username"])

"""Row-locked updates and inserts with slug-conflict translation.

Table and column names passed here come from code, never from request
data; only values are bound as parameters.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError

from portfolio.db import get_engine
from portfolio.errors import NotFoundError, SlugConflictError, is_unique_violation


@contextmanager
def translate_unique_violation(message: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise SlugConflictError(message) from exc
        raise


def insert_unique(
    *,
    table: str,
    values: Mapping[str, object],
    returning: Sequence[str],
    conflict_message: str,
) -> RowMapping:
    columns = ", ".join(values)
    params = ", ".join(f":{column}" for column in values)
    q = text(f"INSERT INTO {table} ({columns}) VALUES ({params}) RETURNING {', '.join(returning)}")

    engine = get_engine()
    with translate_unique_violation(conflict_message):
        with engine.begin() as conn:
            row = conn.execute(q, dict(values)).mappings().first()
    if row is None:
        raise RuntimeError(f"Failed to insert into {table}")
    return row


def update_locked(
    *,
    table: str,
    entity_id: UUID,
    values: Mapping[str, object],
    returning: Sequence[str],
    not_found: NotFoundError,
    conflict_message: str,
    raw_assignments: Sequence[str] = (),
) -> tuple[RowMapping, RowMapping]:
    """Lock the row, apply ``values`` and return ``(before, after)``.

    ``raw_assignments`` are literal ``column = <sql>`` fragments for changes
    that depend on the locked row, such as stamping a timestamp only once.
    Raising anywhere inside the transaction rolls it back.
    """
    assignments = [f"{column} = :{column}" for column in values]
    assignments.extend(raw_assignments)
    assignments.append("updated_at = now()")
    selected = ", ".join(returning)

    q_lock = text(f"SELECT {selected} FROM {table} WHERE id = :entity_id FOR UPDATE")
    q_update = text(
        f"UPDATE {table} SET {', '.join(assignments)} WHERE id = :entity_id RETURNING {selected}"
    )

    engine = get_engine()
    with translate_unique_violation(conflict_message):
        with engine.begin() as conn:
            before = conn.execute(q_lock, {"entity_id": entity_id}).mappings().first()
            if before is None:
                raise not_found

            after = (
                conn.execute(q_update, {**values, "entity_id": entity_id}).mappings().first()
            )
            if after is None:
                raise not_found
    return before, after


def delete_returning(
    *,
    table: str,
    entity_id: UUID,
    returning: Sequence[str],
    not_found: NotFoundError,
) -> RowMapping:
    q = text(f"DELETE FROM {table} WHERE id = :entity_id RETURNING {', '.join(returning)}")
    engine = get_engine()
    with engine.begin() as conn:
        row = conn.execute(q, {"entity_id": entity_id}).mappings().first()
    if row is None:
        raise not_found
    return row

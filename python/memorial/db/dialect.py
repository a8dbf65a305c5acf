"""Dialect-aware statement builders.

The service layer relies on two store primitives that plain ORM calls do not
give atomically: insert-if-absent against a unique key, and knowing which
backend it is talking to (PostgreSQL in production, SQLite in tests).
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from memorial.db.models import Base

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_name(db: Session) -> str:
    """Return the dialect name of the engine the session is bound to."""
    return db.get_bind().dialect.name


def insert_if_absent(
    db: Session,
    model: type[Base],
    values: dict[str, Any],
    conflict_columns: list[str],
) -> bool:
    """INSERT ... ON CONFLICT DO NOTHING for a single row.

    Args:
        db: Database session (caller owns the transaction).
        model: ORM model to insert into.
        values: Column values for the new row.
        conflict_columns: Columns of the unique constraint to arbitrate on.

    Returns:
        True if the row was inserted, False if it already existed.

    Raises:
        NotImplementedError: For dialects without ON CONFLICT support.
    """
    name = dialect_name(db)
    builder = _INSERT_BUILDERS.get(name)
    if builder is None:
        raise NotImplementedError(f"insert_if_absent is not supported on dialect {name!r}")

    stmt = builder(model).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    result = db.execute(stmt)
    return result.rowcount == 1

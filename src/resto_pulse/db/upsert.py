"""Dialect-native ``INSERT ... ON CONFLICT DO UPDATE`` helper."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model: type[Any],
    values: Mapping[str, Any],
    *,
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> None:
    """Insert ``values`` or update the row that already owns the conflict key.

    The statement is a single round trip, so two concurrent writers for the
    same key can never both insert.

    Args:
        db: Active session; the statement joins its transaction.
        model: Mapped class whose table is written.
        values: Column values for the insert.
        conflict_columns: Columns of the unique constraint that decides a conflict.
        update_columns: Columns overwritten from the incoming row on conflict.

    Raises:
        NotImplementedError: If the bound dialect has no native upsert.
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Upsert is not supported on dialect {dialect!r}")

    stmt = insert(model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )
    db.execute(stmt)

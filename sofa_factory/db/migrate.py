"""Tiny home-grown migration helpers.

Migrations are additive and idempotent: a column that a model declares but an
existing table lacks is added with ``ALTER TABLE ADD COLUMN``. Nothing is ever
dropped.
"""

from __future__ import annotations

import logging

from sqlalchemy import MetaData, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.schema import Column

logger = logging.getLogger("sofa_factory.migrate")


def _column_names(engine: Engine, table: str) -> set[str]:
    inspector = inspect(engine)
    if not inspector.has_table(table):
        return set()
    return {column["name"] for column in inspector.get_columns(table)}


def _column_ddl(engine: Engine, column: Column) -> str:
    col_type = column.type.compile(dialect=engine.dialect)
    ddl = f"{column.name} {col_type}"
    default = column.default.arg if column.default is not None and column.default.is_scalar else None
    if isinstance(default, (int, float)) and not isinstance(default, bool):
        ddl += f" DEFAULT {default}"
    elif isinstance(default, str):
        ddl += " DEFAULT '" + default.replace("'", "''") + "'"
    return ddl


def _add_column(engine: Engine, table: str, col_def: str) -> None:
    """ALTER TABLE ADD COLUMN helper."""
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def run_migrations(engine: Engine, metadata: MetaData) -> list[str]:
    """Bring existing tables up to date with the models; return added columns."""

    added: list[str] = []
    for table in metadata.sorted_tables:
        existing = _column_names(engine, table.name)
        if not existing:
            # Table absent -> create_all builds the fresh schema.
            continue
        for column in table.columns:
            if column.name in existing or column.primary_key:
                continue
            # Added columns stay nullable; SQLite rejects NOT NULL without a default.
            _add_column(engine, table.name, _column_ddl(engine, column))
            added.append(f"{table.name}.{column.name}")
    if added:
        logger.info("schema.migrated", extra={"extra_data": {"columns": added}})
    return added

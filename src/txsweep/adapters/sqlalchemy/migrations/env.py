"""Alembic environment for the ledger schema."""

from __future__ import annotations

from typing import Any

from alembic import context
from sqlalchemy import create_engine, pool

from txsweep.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from txsweep.config import get_database_config

config = context.config

start_mappers()


def _run(**options: Any) -> None:
    context.configure(
        target_metadata=mapper_registry.metadata,
        render_as_batch=True,
        compare_type=True,
        **options,
    )
    with context.begin_transaction():
        context.run_migrations()


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def run_migrations_offline() -> None:
    _run(url=_database_url(), literal_binds=True)


def run_migrations_online() -> None:
    # upgrade_head(engine=...) hands over an open connection
    connection = config.attributes.get("connection")
    if connection is not None:
        _run(connection=connection)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as owned_connection:
            _run(connection=owned_connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

"""Alembic environment for the business directory schema.

Revisions are raw SQL run through exec_driver_sql, so there is no metadata
to autogenerate from. The target database is the DATABASE_URL the service
itself reads.
"""

from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine, pool

from bizbot.infra.db import migration_url
from bizbot.infra.settings import Settings
from bizbot.observability.logging import get_logger

logger = get_logger("bizbot.migrations")


def _run(**configure_args) -> None:
    context.configure(target_metadata=None, **configure_args)
    with context.begin_transaction():
        context.run_migrations()


def main() -> None:
    # An explicit sqlalchemy.url (alembic.ini or Config) wins over the env
    url = migration_url(
        context.config.get_main_option("sqlalchemy.url") or Settings.from_env().database_url
    )
    offline = context.is_offline_mode()
    logger.info(
        "running directory migrations",
        extra={"extra_fields": {"mode": "offline" if offline else "online"}},
    )

    if offline:
        _run(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
        return

    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _run(connection=connection)
    finally:
        engine.dispose()


main()

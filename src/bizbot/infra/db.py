"""Database access layer using psycopg2.

The relay only reads (business directory lookups), so this module keeps the
connection and transaction helpers plus the two fetch helpers. Alembic reaches
the same database through migration_url.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor


def get_conn(dsn: str | None) -> PgConnection:
    """Open a new database connection.

    Raises:
        RuntimeError: If no DSN is configured.
        psycopg2.Error: On connection failure.
    """
    if not dsn:
        raise RuntimeError("DATABASE_URL is not configured")
    return psycopg2.connect(dsn)


@contextmanager
def txn(dsn: str | None) -> Iterator[PgCursor]:
    """Short transaction on a fresh connection.

    Commits on successful exit, rolls back on exception, always closes.

    Example:
        with txn(settings.database_url) as cur:
            row = fetchone(cur, "SELECT 1")
    """
    conn = get_conn(dsn)
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    """Execute query and fetch one row (None if no results)."""
    cur.execute(query, params)
    return cur.fetchone()


def fetchall(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> list[tuple[Any, ...]]:
    """Execute query and fetch all rows."""
    cur.execute(query, params)
    return cur.fetchall()


def migration_url(dsn: str | None) -> str:
    """DATABASE_URL in the form SQLAlchemy needs to reach psycopg2.

    Raises:
        RuntimeError: If no DSN is configured.
    """
    if not dsn:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    for scheme in ("postgres://", "postgresql://"):
        if dsn.startswith(scheme):
            return "postgresql+psycopg2://" + dsn[len(scheme):]
    return dsn

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from finworker.config.settings import Settings
from finworker.logging.logger import Log

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_pool: ConnectionPool | None = None


def build_conninfo(settings: Settings) -> str:
    """Prefer DATABASE_URL; otherwise assemble libpq keywords from DB_* settings."""
    if settings.database_url:
        return settings.database_url
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


def init_pool(settings: Settings) -> None:
    """Initialize the global connection pool from settings.

    Sized so every worker thread and the readiness probe can hold a
    connection at once.
    """
    global _pool  # noqa: PLW0603
    _pool = ConnectionPool(
        build_conninfo(settings),
        min_size=1,
        max_size=max(4, settings.worker_concurrency * 2 + 1),
    )


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn


def check_connection() -> bool:
    """Round-trip ``SELECT 1``; False when the pool is missing or the database is down."""
    if _pool is None:
        return False
    try:
        with _pool.connection(timeout=2.0) as conn:
            conn.execute("SELECT 1")
        return True
    except (psycopg.Error, OSError) as exc:
        Log.warning(f"Readiness check failed: {exc}")
        return False


def apply_schema() -> None:
    """Create tables and indexes if they do not exist."""
    with get_connection() as conn:
        conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
        conn.commit()

import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from finworker.config.settings import Settings
from finworker.database.connection import apply_schema, close_pool, get_connection, init_pool
from finworker.database.models import DocumentJobRecord
from finworker.database.repositories.job_repository import JobRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "finworker_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DATABASE_URL or DB_* env to point at a scratch database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def user_id(integration_pool: None) -> Generator[str, None, None]:
    """A fresh user id; every row written for it is removed afterwards."""
    uid = f"test-{uuid.uuid4()}"
    yield uid
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table in (
                "dead_letter_records",
                "document_insights",
                "analytics_snapshots",
                "accounts",
                "document_jobs",
            ):
                cur.execute(f"DELETE FROM {table} WHERE user_id = %s", (uid,))
        conn.commit()


@pytest.fixture
def seed_job(user_id: str) -> DocumentJobRecord:
    return JobRepository().enqueue(user_id, f"file-{uuid.uuid4()}", "may-payslip.pdf")

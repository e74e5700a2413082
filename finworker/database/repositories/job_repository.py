from typing import Any

import psycopg
from psycopg.rows import dict_row

from finworker.database.connection import get_connection
from finworker.database.models import DocumentJobRecord

_COLUMNS = """
    id, user_id, file_id, original_name, storage_disk, content_hash,
    candidate_type, status, upload_state, process_state, attempts, retry_at,
    last_error_code, last_error_message, schema_version, parser_version,
    prompt_version, model, previous_status, locked_at, created_at, updated_at
"""

TERMINAL_STATUSES = ("succeeded", "failed", "rejected", "dead_letter")


def _to_record(row: dict[str, Any]) -> DocumentJobRecord:
    return DocumentJobRecord(**row)


class JobRepository:
    """Database operations for the document_jobs table."""

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> DocumentJobRecord | None:
        """Claim the next due pending job using SELECT FOR UPDATE SKIP LOCKED.

        A job is due once its retry_at has passed. The row lock and the
        status change happen in one transaction, so concurrent workers never
        claim the same job.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id
                FROM document_jobs
                WHERE status = 'pending'
                  AND retry_at <= NOW()
                ORDER BY retry_at, created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """
            )
            row = cur.fetchone()
            if row is None:
                conn.commit()
                return None

            cur.execute(
                f"""
                UPDATE document_jobs
                SET status = 'in_progress', process_state = 'in_progress',
                    locked_at = NOW(), updated_at = NOW()
                WHERE id = %s
                RETURNING {_COLUMNS}
                """,
                (row["id"],),
            )
            claimed = cur.fetchone()
        conn.commit()

        return _to_record(claimed) if claimed else None

    def enqueue(
        self,
        user_id: str,
        file_id: str,
        original_name: str,
        storage_disk: str = "local",
        candidate_type: str | None = None,
    ) -> DocumentJobRecord:
        """Create the job for an accepted upload; returns the existing job on repeat."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO document_jobs
                        (user_id, file_id, original_name, storage_disk, candidate_type)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (user_id, file_id) DO NOTHING
                    RETURNING {_COLUMNS}
                    """,
                    (user_id, file_id, original_name, storage_disk, candidate_type),
                )
                row = cur.fetchone()
                if row is None:
                    cur.execute(
                        f"SELECT {_COLUMNS} FROM document_jobs WHERE user_id = %s AND file_id = %s",
                        (user_id, file_id),
                    )
                    row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(f"Job for file {file_id} vanished during enqueue")
        return _to_record(row)

    def record_input(self, job_id: int, content_hash: str, candidate_type: str) -> None:
        """Store the raw-bytes hash and the candidate document type."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET content_hash = %s, candidate_type = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (content_hash, candidate_type, job_id),
            )
            conn.commit()

    def mark_succeeded(self, job_id: int, version: dict[str, str]) -> None:
        """Mark a job as succeeded and pin the pipeline version that produced it."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET status = 'succeeded', process_state = 'succeeded',
                    last_error_code = NULL, last_error_message = NULL,
                    schema_version = %s, parser_version = %s,
                    prompt_version = %s, model = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (
                    version.get("schema_version"),
                    version.get("parser_version"),
                    version.get("prompt_version"),
                    version.get("model"),
                    job_id,
                ),
            )
            conn.commit()

    def mark_rejected(self, job_id: int, code: str, message: str) -> None:
        """Mark a job as permanently rejected. Attempts are left untouched."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET status = 'rejected', process_state = 'failed',
                    last_error_code = %s, last_error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (code, message, job_id),
            )
            conn.commit()

    def schedule_retry(
        self, job_id: int, attempts: int, delay_ms: int, code: str, message: str
    ) -> None:
        """Return a failed job to pending, not claimable until the delay has passed."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET status = 'pending', process_state = 'failed',
                    attempts = %s,
                    retry_at = NOW() + make_interval(secs => %s),
                    last_error_code = %s, last_error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (attempts, delay_ms / 1000.0, code, message, job_id),
            )
            conn.commit()

    def mark_dead_letter(self, job_id: int, attempts: int, code: str, message: str) -> None:
        """Move a job that exhausted its attempts to dead_letter."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_jobs
                SET status = 'dead_letter', process_state = 'failed',
                    attempts = %s,
                    last_error_code = %s, last_error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (attempts, code, message, job_id),
            )
            conn.commit()

    def requeue(self, job_id: int) -> bool:
        """Operator action: send a terminal job back to pending.

        The prior status is kept in previous_status so the job loop can skip
        work that already completed. Returns False if the job is not terminal.
        """
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE document_jobs
                SET previous_status = status, status = 'pending',
                    process_state = 'pending', retry_at = NOW(),
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s AND status = ANY(%s)
                """,
                (job_id, list(TERMINAL_STATUSES)),
            )
            conn.commit()
            return cur.rowcount == 1

    def find_by_id(self, job_id: int) -> DocumentJobRecord | None:
        """Find a job by ID."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM document_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

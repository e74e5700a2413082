from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from finworker.database.connection import get_connection
from finworker.database.models import DeadLetterRecord


class DeadLetterRepository:
    """Database operations for the dead_letter_records table."""

    def record(self, entry: DeadLetterRecord) -> None:
        """Write the dead-letter entry for a (user, file); a repeat refreshes it."""
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO dead_letter_records (user_id, file_id, job_id, reason, details)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (user_id, file_id) DO UPDATE SET
                    job_id = EXCLUDED.job_id,
                    reason = EXCLUDED.reason,
                    details = EXCLUDED.details,
                    created_at = NOW()
                """,
                (entry.user_id, entry.file_id, entry.job_id, entry.reason, Jsonb(entry.details)),
            )
            conn.commit()

    def find(self, user_id: str, file_id: str) -> DeadLetterRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, file_id, job_id, reason, details, created_at
                    FROM dead_letter_records
                    WHERE user_id = %s AND file_id = %s
                    """,
                    (user_id, file_id),
                )
                row = cur.fetchone()
        return DeadLetterRecord(**row) if row else None

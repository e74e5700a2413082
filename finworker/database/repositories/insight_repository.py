from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from finworker.database.connection import get_connection
from finworker.database.models import InsightRecord

_COLUMNS = """
    id, user_id, file_id, schema_version, content_hash, catalogue_key,
    to_char(document_date, 'YYYY-MM-DD') AS document_date, document_month,
    metadata, metrics, metrics_v1, transactions, status, status_reason,
    created_at, updated_at
"""


def _to_record(row: dict[str, Any]) -> InsightRecord:
    return InsightRecord(**row)


class InsightRepository:
    """Database operations for the document_insights table."""

    def insert_if_absent(self, insight: InsightRecord) -> bool:
        """Insert an insight unless the same (user, file, schema, content hash) exists.

        Returns True when a new row was written.
        """
        with get_connection() as conn:
            cur = conn.execute(
                """
                INSERT INTO document_insights
                    (user_id, file_id, schema_version, content_hash, catalogue_key,
                     document_date, document_month, metadata, metrics, metrics_v1,
                     transactions, status, status_reason)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (user_id, file_id, schema_version, content_hash) DO NOTHING
                """,
                (
                    insight.user_id,
                    insight.file_id,
                    insight.schema_version,
                    insight.content_hash,
                    insight.catalogue_key,
                    insight.document_date,
                    insight.document_month,
                    Jsonb(insight.metadata),
                    Jsonb(insight.metrics) if insight.metrics is not None else None,
                    Jsonb(insight.metrics_v1) if insight.metrics_v1 is not None else None,
                    Jsonb(insight.transactions),
                    insight.status,
                    insight.status_reason,
                ),
            )
            conn.commit()
            return cur.rowcount == 1

    def find_by_key(
        self, user_id: str, file_id: str, schema_version: str, content_hash: str
    ) -> InsightRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM document_insights
                    WHERE user_id = %s AND file_id = %s
                      AND schema_version = %s AND content_hash = %s
                    """,
                    (user_id, file_id, schema_version, content_hash),
                )
                row = cur.fetchone()
        return _to_record(row) if row else None

    def find_latest_for_file(self, user_id: str, file_id: str) -> InsightRecord | None:
        """Most recently written insight for a file, across pipeline versions."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM document_insights
                    WHERE user_id = %s AND file_id = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT 1
                    """,
                    (user_id, file_id),
                )
                row = cur.fetchone()
        return _to_record(row) if row else None

    def list_for_period(self, user_id: str, period: str) -> list[InsightRecord]:
        """Successful insights for a month, one per file.

        The latest insight of each file is picked across all months first, so a
        file reprocessed into another month no longer counts here.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM (
                        SELECT DISTINCT ON (file_id) *
                        FROM document_insights
                        WHERE user_id = %s
                        ORDER BY file_id, created_at DESC, id DESC
                    ) AS latest
                    WHERE document_month = %s AND status = 'success'
                    ORDER BY file_id
                    """,
                    (user_id, period),
                )
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]

    def update_status(
        self, user_id: str, file_id: str, status: str, reason: str | None
    ) -> int:
        """Correct status/status_reason on a file's insights. Returns rows touched."""
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE document_insights
                SET status = %s, status_reason = %s, updated_at = NOW()
                WHERE user_id = %s AND file_id = %s
                """,
                (status, reason, user_id, file_id),
            )
            conn.commit()
            return cur.rowcount

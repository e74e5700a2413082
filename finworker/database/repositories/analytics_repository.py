from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from finworker.database.connection import get_connection
from finworker.database.models import AnalyticsSnapshotRecord


class AnalyticsRepository:
    """Database operations for the analytics_snapshots table."""

    def replace_snapshot(self, snapshot: AnalyticsSnapshotRecord) -> None:
        """Upsert the (user, period) snapshot, overwriting every aggregate column."""
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO analytics_snapshots
                    (user_id, period, status, status_reason, sources, totals, built_at)
                VALUES (%s, %s, %s, %s, %s, %s, NOW())
                ON CONFLICT (user_id, period) DO UPDATE SET
                    status = EXCLUDED.status,
                    status_reason = EXCLUDED.status_reason,
                    sources = EXCLUDED.sources,
                    totals = EXCLUDED.totals,
                    built_at = NOW()
                """,
                (
                    snapshot.user_id,
                    snapshot.period,
                    snapshot.status,
                    snapshot.status_reason,
                    Jsonb(snapshot.sources),
                    Jsonb(snapshot.totals),
                ),
            )
            conn.commit()

    def find(self, user_id: str, period: str) -> AnalyticsSnapshotRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, period, status, status_reason, sources, totals, built_at
                    FROM analytics_snapshots
                    WHERE user_id = %s AND period = %s
                    """,
                    (user_id, period),
                )
                row: dict[str, Any] | None = cur.fetchone()
        return AnalyticsSnapshotRecord(**row) if row else None

from dataclasses import dataclass

from finworker.analytics.aggregate import aggregate
from finworker.analytics.period import resolve_period
from finworker.database.models import AnalyticsSnapshotRecord
from finworker.database.repositories.analytics_repository import AnalyticsRepository
from finworker.database.repositories.insight_repository import InsightRepository
from finworker.logging.logger import Log

MISSING_FIELDS_REASON = "missing required fields for analytics"
UNRESOLVED_PERIOD = "unresolved"


@dataclass(frozen=True)
class RebuildResult:
    status: str
    period: str | None
    reason: str | None = None


class AnalyticsRebuilder:
    """Rebuilds the per-user monthly snapshot from the period's insights."""

    def __init__(self, insight_repo: InsightRepository, analytics_repo: AnalyticsRepository) -> None:
        self._insight_repo = insight_repo
        self._analytics_repo = analytics_repo

    def rebuild(
        self,
        user_id: str,
        *,
        period_month: str | int | None = None,
        period_year: int | None = None,
        pay_date: str | None = None,
        file_id: str | None = None,
    ) -> RebuildResult:
        """Fully replace the snapshot for the resolved period.

        When no period resolves, the failure is written to a snapshot keyed
        ``unresolved`` and to the triggering file's insight, and returned
        rather than raised.
        """
        period = resolve_period(period_month, period_year, pay_date)
        if period is None:
            self._record_failure(user_id, file_id)
            return RebuildResult(status="failed", period=None, reason=MISSING_FIELDS_REASON)

        insights = self._insight_repo.list_for_period(user_id, period)
        sources, totals = aggregate(insights)
        self._analytics_repo.replace_snapshot(
            AnalyticsSnapshotRecord(
                user_id=user_id,
                period=period,
                status="success",
                status_reason=None,
                sources=sources,
                totals=totals,
            )
        )
        Log.info(
            f"Analytics snapshot rebuilt for user {user_id}, period {period} "
            f"from {len(insights)} insights"
        )
        return RebuildResult(status="success", period=period)

    def _record_failure(self, user_id: str, file_id: str | None) -> None:
        Log.warning(
            f"Analytics rebuild failed for user {user_id}, file {file_id}: {MISSING_FIELDS_REASON}"
        )
        self._analytics_repo.replace_snapshot(
            AnalyticsSnapshotRecord(
                user_id=user_id,
                period=UNRESOLVED_PERIOD,
                status="failed",
                status_reason=MISSING_FIELDS_REASON,
                sources={"file_ids": [file_id] if file_id else []},
                totals={},
            )
        )
        if file_id:
            self._insight_repo.update_status(user_id, file_id, "failed", MISSING_FIELDS_REASON)

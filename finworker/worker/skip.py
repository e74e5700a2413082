from typing import Any

from finworker.database.models import DocumentJobRecord, InsightRecord

REQUIRED_METRIC_FIELDS: dict[str, tuple[str, ...]] = {
    "payslip": ("gross", "net"),
    "statement": ("inflow", "outflow"),
}


def _has_numbers(source: Any, fields: tuple[str, ...]) -> bool:
    if not isinstance(source, dict):
        return False
    return all(
        isinstance(source.get(name), (int, float)) and not isinstance(source.get(name), bool)
        for name in fields
    )


def has_required_insight_fields(insight: InsightRecord | None) -> bool:
    """True only for a successful insight with a month and its required numbers.

    The numbers may come from the flat ``metrics`` or from
    ``metrics_v1.totals``.
    """
    if insight is None or insight.status != "success" or not insight.document_month:
        return False
    fields = REQUIRED_METRIC_FIELDS.get(insight.catalogue_key)
    if fields is None:
        return False
    metrics_v1_totals = (insight.metrics_v1 or {}).get("totals")
    return _has_numbers(insight.metrics, fields) or _has_numbers(metrics_v1_totals, fields)


def is_skippable(job: DocumentJobRecord, insight: InsightRecord | None) -> bool:
    """A job already seen as succeeded may be skipped only if its insight is complete."""
    if job.previous_status != "succeeded":
        return False
    return has_required_insight_fields(insight)

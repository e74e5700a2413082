from dataclasses import asdict
from typing import Any

from finworker.database.models import InsightRecord
from finworker.normalization.models import (
    NormalizationResult,
    PayslipMetricsV1,
    StatementMetricsV1,
)


def _payslip_fields(metrics: PayslipMetricsV1) -> tuple[str | None, dict[str, Any]]:
    totals = metrics.totals
    flat = {
        "gross": totals.gross,
        "net": totals.net,
        "income_tax": totals.income_tax,
        "national_insurance": totals.national_insurance,
        "pension": totals.pension,
        "student_loan": totals.student_loan,
        "other_deductions": totals.other_deductions,
    }
    return metrics.pay_date, flat


def _statement_fields(metrics: StatementMetricsV1) -> tuple[str | None, dict[str, Any]]:
    flat = {
        "inflow": metrics.totals.inflow,
        "outflow": metrics.totals.outflow,
        "opening_balance": metrics.opening_balance,
        "closing_balance": metrics.closing_balance,
    }
    return metrics.period_end or metrics.period_start, flat


def build_insight(
    *,
    user_id: str,
    file_id: str,
    schema_version: str,
    content_hash: str,
    result: NormalizationResult,
    metadata: dict[str, Any] | None = None,
) -> InsightRecord:
    """Assemble the insight row for a normalized document.

    ``metrics`` holds the flat headline figures, ``metrics_v1`` the full
    canonical structure; both in minor units.
    """
    metrics_v1 = result.metrics.to_dict()
    transactions: list[dict[str, Any]] = []
    if isinstance(result.metrics, StatementMetricsV1):
        document_date, flat = _statement_fields(result.metrics)
        transactions = metrics_v1.pop("transactions", [])
        counterparty = {"institution_name": result.metrics.institution_name}
    else:
        document_date, flat = _payslip_fields(result.metrics)
        counterparty = {"employer_name": result.metrics.employer_name}

    return InsightRecord(
        user_id=user_id,
        file_id=file_id,
        schema_version=schema_version,
        content_hash=content_hash,
        catalogue_key=result.document_type,
        status="success",
        document_date=document_date,
        document_month=document_date[:7] if document_date else None,
        metadata={
            "document_type": result.document_type,
            "currency": result.metrics.currency,
            "integrity": asdict(result.integrity),
            **counterparty,
            **(metadata or {}),
        },
        metrics=flat,
        metrics_v1=metrics_v1,
        transactions=transactions,
    )

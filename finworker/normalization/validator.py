"""Validates normalized metrics against canonical schema invariants."""

import re

from finworker.canonical.categories import is_known_category
from finworker.normalization.models import (
    PayslipMetricsV1,
    StatementMetricsV1,
    ValidationResult,
)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CURRENCY = re.compile(r"^[A-Z]{3}$")
_VALID_DIRECTIONS = frozenset({"inflow", "outflow"})


def validate_payslip_metrics(metrics: PayslipMetricsV1) -> ValidationResult:
    """Check a normalized payslip. Never raises; errors are collected."""
    errors: list[str] = []
    _require_date(errors, "pay_date", metrics.pay_date, required=True)
    _require_date(errors, "period_start", metrics.period_start)
    _require_date(errors, "period_end", metrics.period_end)
    _require_currency(errors, metrics.currency)
    totals = metrics.totals
    for name in ("gross", "income_tax", "national_insurance", "pension", "student_loan", "net"):
        value = getattr(totals, name)
        if not _is_int(value):
            errors.append(f"'totals.{name}' must be an integer amount in minor units")
        elif value < 0:
            errors.append(f"'totals.{name}' must not be negative")
    if not _is_int(totals.other_deductions):
        errors.append("'totals.other_deductions' must be an integer amount in minor units")
    if totals.other_source not in ("provided", "computed"):
        errors.append(f"'totals.other_source' is invalid: {totals.other_source!r}")
    return ValidationResult(ok=not errors, errors=errors)


def validate_statement_metrics(metrics: StatementMetricsV1) -> ValidationResult:
    """Check a normalized statement. Never raises; errors are collected."""
    errors: list[str] = []
    if metrics.period_start is None and metrics.period_end is None:
        errors.append("statement period is required")
    _require_date(errors, "period_start", metrics.period_start)
    _require_date(errors, "period_end", metrics.period_end)
    _require_currency(errors, metrics.currency)
    for name in ("opening_balance", "closing_balance"):
        value = getattr(metrics, name)
        if value is not None and not _is_int(value):
            errors.append(f"'{name}' must be an integer amount in minor units or null")
    for i, transaction in enumerate(metrics.transactions):
        if not _is_int(transaction.amount):
            errors.append(f"Transaction at index {i}: 'amount' must be an integer")
        if transaction.direction not in _VALID_DIRECTIONS:
            errors.append(f"Transaction at index {i}: invalid direction {transaction.direction!r}")
        elif (transaction.amount >= 0) != (transaction.direction == "inflow"):
            errors.append(f"Transaction at index {i}: direction does not match amount sign")
        if not is_known_category(transaction.category):
            errors.append(f"Transaction at index {i}: unknown category {transaction.category!r}")
        _require_date(errors, f"transactions[{i}].date", transaction.date)
    return ValidationResult(ok=not errors, errors=errors)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_date(errors: list[str], name: str, value: str | None, required: bool = False) -> None:
    if value is None:
        if required:
            errors.append(f"'{name}' is required")
        return
    if not _ISO_DATE.match(value):
        errors.append(f"'{name}' must be an ISO date (YYYY-MM-DD), got {value!r}")


def _require_currency(errors: list[str], currency: str) -> None:
    if not _CURRENCY.match(currency or ""):
        errors.append(f"'currency' must be a 3-letter ISO code, got {currency!r}")

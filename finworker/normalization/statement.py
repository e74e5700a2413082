from typing import Any

from finworker.canonical.categories import normalise_category
from finworker.canonical.institutions import canonicalise_institution
from finworker.canonical.pii import account_last4, hash_pii, mask_account, mask_sort_code
from finworker.normalization.dates import ensure_iso_date
from finworker.normalization.fields import dig, first_present, first_text
from finworker.normalization.models import (
    IncompleteExtraction,
    IntegrityResult,
    NormalizationResult,
    StatementMetricsV1,
    StatementTotals,
    Transaction,
)
from finworker.normalization.money import to_minor_units

_TOLERANCE = 1


def _transaction_source(raw: Any) -> list[Any]:
    for path in ("transactions", "statement.transactions", "activity"):
        value = dig(raw, path)
        if isinstance(value, list):
            return value
    return []


def _transaction_amount(entry: Any) -> int | None:
    amount = to_minor_units(dig(entry, "amount"))
    if amount is not None:
        return amount
    credit = to_minor_units(dig(entry, "credit"))
    debit = to_minor_units(dig(entry, "debit"))
    if credit is None and debit is None:
        return None
    return (credit or 0) - (debit or 0)


def _extract_transactions(raw: Any) -> list[Transaction]:
    transactions = []
    for entry in _transaction_source(raw):
        amount = _transaction_amount(entry)
        if amount is None:
            continue
        transactions.append(
            Transaction(
                date=ensure_iso_date(
                    first_present(entry, "date", "postedDate", "transactionDate")
                ),
                description=first_text(entry, "description", "narrative", "merchant", "summary"),
                amount=amount,
                direction="inflow" if amount >= 0 else "outflow",
                category=normalise_category(first_present(entry, "category", "categoryName")),
            )
        )
    return transactions


def _balance_integrity(
    opening: int | None, closing: int | None, inflow: int, outflow: int
) -> IntegrityResult:
    if opening is None or closing is None:
        return IntegrityResult(status="pass")
    delta = opening + inflow - outflow - closing
    if abs(delta) > _TOLERANCE:
        return IntegrityResult(status="fail", reason="balance_mismatch", delta=delta)
    return IntegrityResult(status="pass")


def normalize_statement(
    raw: Any, *, pepper: str | None
) -> NormalizationResult | IncompleteExtraction:
    """Normalize a provider bank statement payload into ``StatementMetricsV1``.

    Balances stay None when absent; the balance check only runs when both
    are reported. Returns ``IncompleteExtraction`` without a statement period.
    """
    period_start = ensure_iso_date(
        first_present(raw, "period.start", "statement.period.from", "fromDate")
    )
    period_end = ensure_iso_date(
        first_present(raw, "period.end", "statement.period.to", "toDate")
    )
    if period_start is None and period_end is None:
        return IncompleteExtraction(document_type="statement", missing_fields=["period"])

    institution = canonicalise_institution(
        first_text(raw, "institution.name", "bank.name", "account.institution", "institutionName")
    )
    account_number = first_text(raw, "account.number", "accountNumber", "account.iban")
    opening = to_minor_units(
        first_present(raw, "balances.opening", "openingBalance", "statement.openingBalance")
    )
    closing = to_minor_units(
        first_present(raw, "balances.closing", "closingBalance", "statement.closingBalance")
    )
    transactions = _extract_transactions(raw)
    inflow = sum(t.amount for t in transactions if t.direction == "inflow")
    outflow = sum(-t.amount for t in transactions if t.direction == "outflow")

    metrics = StatementMetricsV1(
        institution_name=institution.canonical,
        institution_raw=institution.raw,
        period_start=period_start,
        period_end=period_end,
        opening_balance=opening,
        closing_balance=closing,
        currency=first_text(raw, "currency", "statement.currency") or "GBP",
        totals=StatementTotals(inflow=inflow, outflow=outflow),
        transactions=transactions,
        sort_code_masked=mask_sort_code(
            first_text(raw, "account.sortCode", "sortCode", "account.routingNumber")
        ),
        account_last4=account_last4(account_number),
        account_number_masked=mask_account(account_number) or None,
        account_hash=hash_pii(account_number, pepper) if account_number else None,
        account_type=first_text(raw, "account.type", "accountType"),
    )
    return NormalizationResult(
        document_type="statement",
        metrics=metrics,
        integrity=_balance_integrity(opening, closing, inflow, outflow),
    )

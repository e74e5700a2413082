"""Pure aggregation of a period's insights into snapshot totals."""

from collections import defaultdict
from typing import Any

from finworker.canonical.categories import NON_SPEND_CATEGORIES, normalise_category
from finworker.database.models import InsightRecord

SAVINGS_ACCOUNT_TYPES = frozenset({"savings", "isa"})
INVESTMENT_ACCOUNT_TYPES = frozenset({"investment"})
PENSION_ACCOUNT_TYPES = frozenset({"pension"})


def _int(source: dict[str, Any] | None, key: str) -> int:
    value = (source or {}).get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _ratio(numerator: int, denominator: int) -> float | None:
    if denominator <= 0:
        return None
    return round(numerator / denominator, 4)


def aggregate(insights: list[InsightRecord]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(sources, totals)`` for a set of successful insights.

    All money is in minor units. Transfers between own accounts and savings
    movements are excluded from spend. Input order does not matter.
    """
    gross = net = income_tax = national_insurance = student_loan = pension_contrib = 0
    inflow = outflow = statement_income = savings_contrib = 0
    savings_balance = investment_balance = pension_balance = 0
    spend_by_category: dict[str, int] = defaultdict(int)
    payslips = statements = 0

    for insight in insights:
        metrics = insight.metrics or {}
        if insight.catalogue_key == "payslip":
            payslips += 1
            gross += _int(metrics, "gross")
            net += _int(metrics, "net")
            income_tax += _int(metrics, "income_tax")
            national_insurance += _int(metrics, "national_insurance")
            student_loan += _int(metrics, "student_loan")
            pension_contrib += _int(metrics, "pension")
        elif insight.catalogue_key == "statement":
            statements += 1
            inflow += _int(metrics, "inflow")
            outflow += _int(metrics, "outflow")
            account_type = str((insight.metadata or {}).get("account_type") or "current")
            closing = _int(metrics, "closing_balance")
            if account_type in SAVINGS_ACCOUNT_TYPES:
                savings_balance += closing
            elif account_type in INVESTMENT_ACCOUNT_TYPES:
                investment_balance += closing
            elif account_type in PENSION_ACCOUNT_TYPES:
                pension_balance += closing
            for transaction in insight.transactions or []:
                amount = _int(transaction, "amount")
                category = normalise_category(transaction.get("category"))
                if amount >= 0:
                    if category == "Income":
                        statement_income += amount
                    continue
                if category == "Savings":
                    savings_contrib += -amount
                if category in NON_SPEND_CATEGORIES:
                    continue
                spend_by_category[category] += -amount

    spend_total = sum(spend_by_category.values())
    tax_withheld = income_tax + national_insurance
    income_base = net if net > 0 else statement_income

    sources = {
        "insights": len(insights),
        "payslips": payslips,
        "statements": statements,
        "file_ids": sorted({insight.file_id for insight in insights}),
    }
    totals = {
        "income": {"gross": gross, "net": net, "statement_income": statement_income},
        "spend": {
            "total": spend_total,
            "by_category": dict(sorted(spend_by_category.items())),
        },
        "cashflow": {"inflow": inflow, "outflow": outflow, "net": inflow - outflow},
        "savings": {"contributions": savings_contrib, "balance": savings_balance},
        "investments": {"balance": investment_balance},
        "pension": {"contributions": pension_contrib, "balance": pension_balance},
        "tax": {
            "income_tax": income_tax,
            "national_insurance": national_insurance,
            "student_loan": student_loan,
            "withheld": tax_withheld,
            "effective_rate": _ratio(tax_withheld, gross),
        },
        "derived": {
            "savings_rate": _ratio(income_base - spend_total, income_base),
        },
    }
    return sources, totals

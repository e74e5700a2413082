from typing import Any

from finworker.canonical.institutions import canonicalise_employer
from finworker.canonical.pii import hash_pii, mask_ni
from finworker.normalization.dates import ensure_iso_date
from finworker.normalization.fields import dig, first_present, first_text
from finworker.normalization.models import (
    IncompleteExtraction,
    IntegrityResult,
    NormalizationResult,
    PayslipMetricsV1,
    PayslipTotals,
)
from finworker.normalization.money import to_minor_units

# One penny of slack for rounding in provider-reported totals.
_TOLERANCE = 1


def _totals_source(raw: Any) -> Any:
    for key in ("totals", "summary", "paySummary"):
        value = dig(raw, key)
        if isinstance(value, dict):
            return value
    return {}


def _amount(*values: Any) -> int | None:
    for value in values:
        minor = to_minor_units(value)
        if minor is not None:
            return minor
    return None


def _reconcile_other(
    gross: int, deductions: int, net: int, provided: int | None
) -> tuple[int, str]:
    computed = gross - deductions - net
    if provided is None or abs(provided - computed) > _TOLERANCE:
        return computed, "computed"
    return provided, "provided"


def normalize_payslip(
    raw: Any, *, pepper: str | None
) -> NormalizationResult | IncompleteExtraction:
    """Normalize a provider payslip payload into ``PayslipMetricsV1``.

    Returns ``IncompleteExtraction`` when no pay date can be found.

    Raises:
        ConfigurationError: an NI number is present but no pepper is configured.
    """
    pay_date = ensure_iso_date(first_present(raw, "payDate", "paymentDate", "summary.payDate"))
    if pay_date is None:
        return IncompleteExtraction(document_type="payslip", missing_fields=["pay_date"])

    totals_source = _totals_source(raw)
    gross = _amount(
        dig(totals_source, "gross"),
        dig(totals_source, "totalGross"),
        dig(raw, "grossPay"),
        dig(raw, "earnings.total"),
    ) or 0
    income_tax = _amount(
        dig(totals_source, "incomeTax"),
        dig(totals_source, "tax"),
        dig(totals_source, "payAsYouEarn"),
        dig(raw, "incomeTax"),
        dig(raw, "deductions.incomeTax"),
    ) or 0
    national_insurance = _amount(
        dig(totals_source, "nationalInsurance"),
        dig(totals_source, "ni"),
        dig(totals_source, "nationalInsuranceContributions"),
        dig(raw, "nationalInsurance"),
        dig(raw, "deductions.nationalInsurance"),
    ) or 0
    pension = _amount(
        dig(totals_source, "pension"),
        dig(totals_source, "pensionContribution"),
        dig(raw, "deductions.pension"),
        dig(raw, "pension"),
    ) or 0
    student_loan = _amount(
        dig(totals_source, "studentLoan"), dig(raw, "deductions.studentLoan")
    ) or 0
    net = _amount(
        dig(totals_source, "net"),
        dig(totals_source, "netPay"),
        dig(raw, "netPay"),
    ) or 0
    provided_other = _amount(
        dig(totals_source, "otherDeductions"),
        dig(totals_source, "other"),
        dig(raw, "deductions.other"),
    )

    statutory = income_tax + national_insurance + pension + student_loan
    other, other_source = _reconcile_other(gross, statutory, net, provided_other)

    if other < -_TOLERANCE:
        integrity = IntegrityResult(status="fail", reason="net_identity_failed", delta=other)
    else:
        integrity = IntegrityResult(status="pass")

    ni_raw = first_text(
        raw,
        "employee.nationalInsuranceNumber",
        "nationalInsuranceNumber",
        "employee.niNumber",
        "employee.ni",
        "niNumber",
    )
    metrics = PayslipMetricsV1(
        pay_date=pay_date,
        period_start=ensure_iso_date(
            first_present(raw, "period.start", "periodStart", "summary.period.start")
        ),
        period_end=ensure_iso_date(
            first_present(raw, "period.end", "periodEnd", "summary.period.end")
        ),
        employer_name=canonicalise_employer(
            first_text(raw, "employer.name", "employerName", "company.name", "organisation.name")
        ),
        totals=PayslipTotals(
            gross=gross,
            income_tax=income_tax,
            national_insurance=national_insurance,
            pension=pension,
            student_loan=student_loan,
            other_deductions=other,
            other_source=other_source,
            net=net,
        ),
        tax_code=first_text(raw, "employee.taxCode", "taxCode"),
        ni_number_masked=mask_ni(ni_raw) if ni_raw else None,
        ni_hash=hash_pii(ni_raw, pepper) if ni_raw else None,
        currency=first_text(raw, "currency") or "GBP",
    )
    return NormalizationResult(document_type="payslip", metrics=metrics, integrity=integrity)

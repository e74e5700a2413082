from dataclasses import asdict, dataclass, field
from typing import Any, Literal

DocumentType = Literal["payslip", "statement", "unknown"]


@dataclass(frozen=True)
class IntegrityResult:
    status: Literal["pass", "fail"]
    reason: str | None = None
    delta: int | None = None

    @property
    def passed(self) -> bool:
        return self.status == "pass"


@dataclass(frozen=True)
class PayslipTotals:
    """Payslip totals in minor units. Additive fields default to 0."""

    gross: int = 0
    income_tax: int = 0
    national_insurance: int = 0
    pension: int = 0
    student_loan: int = 0
    other_deductions: int = 0
    other_source: Literal["provided", "computed"] = "computed"
    net: int = 0


@dataclass(frozen=True)
class PayslipMetricsV1:
    pay_date: str
    period_start: str | None
    period_end: str | None
    employer_name: str | None
    totals: PayslipTotals
    tax_code: str | None = None
    ni_number_masked: str | None = None
    ni_hash: str | None = None
    currency: str = "GBP"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Transaction:
    date: str | None
    description: str | None
    amount: int
    direction: Literal["inflow", "outflow"]
    category: str = "Misc"


@dataclass(frozen=True)
class StatementTotals:
    inflow: int = 0
    outflow: int = 0


@dataclass(frozen=True)
class StatementMetricsV1:
    institution_name: str | None
    institution_raw: str | None
    period_start: str | None
    period_end: str | None
    opening_balance: int | None
    closing_balance: int | None
    currency: str
    totals: StatementTotals
    transactions: list[Transaction] = field(default_factory=list)
    sort_code_masked: str | None = None
    account_last4: str | None = None
    account_number_masked: str | None = None
    account_hash: str | None = None
    account_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NormalizationResult:
    """Successful normalization of a provider payload."""

    document_type: DocumentType
    metrics: PayslipMetricsV1 | StatementMetricsV1
    integrity: IntegrityResult


@dataclass(frozen=True)
class IncompleteExtraction:
    """Returned instead of a result when mandatory fields are absent."""

    document_type: DocumentType
    missing_fields: list[str]

    @property
    def message(self) -> str:
        return f"{self.document_type} extraction is missing {', '.join(self.missing_fields)}"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    errors: list[str] = field(default_factory=list)

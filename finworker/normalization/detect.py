from typing import Any

from finworker.normalization.fields import dig
from finworker.normalization.models import DocumentType

_PAYSLIP_HINTS = ("payslip", "payroll", "pay slip")
_STATEMENT_HINTS = ("statement", "bank", "account")


def _hint(value: Any) -> str:
    return str(value).lower() if value else ""


def detect_document_type(raw: Any) -> DocumentType:
    """Guess the document type from schema hints, falling back to payload shape."""
    hints = [
        _hint(dig(raw, key))
        for key in ("schema", "schemaName", "documentType", "type", "classification.name")
    ]
    joined = " ".join(hint for hint in hints if hint)
    if any(word in joined for word in _PAYSLIP_HINTS):
        return "payslip"
    if any(word in joined for word in _STATEMENT_HINTS):
        return "statement"

    if isinstance(dig(raw, "transactions"), list) or isinstance(
        dig(raw, "statement.transactions"), list
    ):
        return "statement"
    if dig(raw, "totals.gross") or dig(raw, "payDate") or dig(raw, "employment"):
        return "payslip"
    return "unknown"

from finworker.normalization.content_hash import compute_content_hash
from finworker.normalization.detect import detect_document_type
from finworker.normalization.payslip import normalize_payslip
from finworker.normalization.statement import normalize_statement

__all__ = [
    "compute_content_hash",
    "detect_document_type",
    "normalize_payslip",
    "normalize_statement",
]

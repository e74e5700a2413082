"""Candidate document type from the upload's filename and extracted text."""

_FILENAME_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("p60", "self assessment", "hmrc"), "hmrc"),
    (("payslip", "pay slip", "salary"), "payslip"),
    (("isa",), "isa"),
    (("pension",), "pension"),
    (("investment", "brokerage"), "investment"),
    (("savings",), "savings"),
    (("statement", "bank"), "statement"),
)

_TEXT_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("net pay", "gross pay", "tax code", "ni number"), "payslip"),
    (("sort code", "opening balance", "closing balance"), "statement"),
)


def classify_candidate(original_name: str | None, text: str = "") -> str:
    """Return payslip, statement, isa, pension, investment, savings, hmrc or unknown."""
    name = (original_name or "").lower()
    for needles, candidate in _FILENAME_RULES:
        if any(needle in name for needle in needles):
            return candidate
    lowered = text.lower()
    for needles, candidate in _TEXT_RULES:
        if any(needle in lowered for needle in needles):
            return candidate
    return "unknown"

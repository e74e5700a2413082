import re
from datetime import date, datetime

from dateutil import parser as date_parser

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_ISO_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def ensure_iso_date(value: object) -> str | None:
    """Normalize a date-like value to ``YYYY-MM-DD``.

    ISO prefixes are taken as-is; free text is parsed day-first (UK
    documents). Unparseable input returns None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    match = _ISO_DATE.match(text)
    if match:
        try:
            return date(*(int(part) for part in match.groups())).isoformat()
        except ValueError:
            return None
    try:
        return date_parser.parse(text, dayfirst=True).date().isoformat()
    except (ValueError, OverflowError):
        return None


def ensure_iso_month(value: object) -> str | None:
    """Normalize a month-like value to ``YYYY-MM``."""
    if isinstance(value, str):
        match = _ISO_MONTH.match(value.strip())
        if match:
            month = int(match.group(2))
            return value.strip() if 1 <= month <= 12 else None
    iso_date = ensure_iso_date(value)
    return iso_date[:7] if iso_date else None

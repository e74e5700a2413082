"""Masking and pepper-keyed hashing for personal identifiers.

Masked values are safe to display; hashes are safe to compare across
documents without storing the identifier itself.
"""

import hashlib
import re

from finworker.config.exceptions import ConfigurationError

BULLET = "•"

_NON_DIGITS = re.compile(r"\D")


def _digits(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def mask_account(value: str | None) -> str:
    """Mask all but the last 4 digits of an account number."""
    digits = _digits(value or "")
    if not digits:
        return ""
    return BULLET * max(0, len(digits) - 4) + digits[-4:]


def mask_ni(value: str | None) -> str:
    """Mask all but the last 3 characters of a trimmed NI number."""
    trimmed = (value or "").strip()
    if not trimmed:
        return ""
    if len(trimmed) <= 3:
        return BULLET * len(trimmed)
    return BULLET * (len(trimmed) - 3) + trimmed[-3:]


def mask_sort_code(value: str | None) -> str | None:
    """Render a sort code as ``••-••-56``; None when fewer than 6 digits."""
    digits = _digits(value or "")
    if len(digits) < 6:
        return None
    return f"{BULLET * 2}-{BULLET * 2}-{digits[4:6]}"


def hash_pii(value: str | None, pepper: str | None) -> str:
    """SHA-256 hex digest of ``trim(value) + pepper``.

    Raises:
        ConfigurationError: if no pepper is configured.
    """
    trimmed = (value or "").strip()
    if not trimmed:
        return ""
    if not pepper:
        raise ConfigurationError("PII hash pepper is not configured")
    return hashlib.sha256(f"{trimmed}{pepper}".encode("utf-8")).hexdigest()


def account_last4(value: str | None) -> str | None:
    digits = _digits(value or "")
    if not digits:
        return None
    return digits[-4:]


def ni_last3(value: str | None) -> str | None:
    compact = re.sub(r"\s+", "", value or "")
    if not compact:
        return None
    return compact[-3:]

from dataclasses import dataclass

INSTITUTION_ALIASES: dict[str, str] = {
    "MONZO BANK LTD": "Monzo",
    "MONZO": "Monzo",
    "HALIFAX PLC": "Halifax",
    "THE VANGUARD GROUP": "Vanguard",
    "VANGUARD UK": "Vanguard",
    "BARCLAYS BANK UK PLC": "Barclays",
    "HSBC UK BANK PLC": "HSBC",
}


@dataclass(frozen=True)
class CanonicalName:
    """Canonical institution name alongside the trimmed raw input."""

    canonical: str | None
    raw: str | None


def canonicalise_institution(name: str | None) -> CanonicalName:
    """Map a raw institution name onto the alias table.

    Lookup is exact after trimming and upper-casing. Unmapped names are
    returned trimmed as their own canonical form.
    """
    raw = (name or "").strip()
    if not raw:
        return CanonicalName(canonical=None, raw=None)
    canonical = INSTITUTION_ALIASES.get(raw.upper(), raw)
    return CanonicalName(canonical=canonical, raw=raw)


def canonicalise_employer(name: str | None) -> str | None:
    """Trim an employer name. Employers are never aliased."""
    trimmed = (name or "").strip()
    return trimmed or None

from finworker.normalization.dates import ensure_iso_month


def resolve_period(
    period_month: str | int | None = None,
    period_year: int | None = None,
    pay_date: str | None = None,
) -> str | None:
    """Resolve the ``YYYY-MM`` analytics period.

    An explicit month wins: either ``"2024-05"`` or a month number combined
    with ``period_year``. Otherwise the month of ``pay_date`` is used. A year
    alone does not identify a period.
    """
    if isinstance(period_month, int) and not isinstance(period_month, bool):
        if period_year and 1 <= period_month <= 12:
            return f"{int(period_year):04d}-{period_month:02d}"
    elif isinstance(period_month, str) and period_month.strip():
        text = period_month.strip()
        if text.isdigit() and period_year:
            return resolve_period(int(text), period_year)
        month = ensure_iso_month(text)
        if month:
            return month
    if pay_date:
        return ensure_iso_month(pay_date)
    return None

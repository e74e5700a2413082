CATCH_ALL_CATEGORY = "Misc"

CATEGORIES: tuple[str, ...] = (
    "Income",
    "Groceries",
    "EatingOut",
    "Utilities",
    "RentMortgage",
    "Transport",
    "Fuel",
    "Entertainment",
    "Subscriptions",
    "Health",
    "Insurance",
    "Education",
    "Travel",
    "Cash",
    "Transfers",
    "DebtRepayment",
    "Fees",
    "GiftsDonations",
    "Childcare",
    "Home",
    "Shopping",
    "Savings",
    CATCH_ALL_CATEGORY,
)

# Categories that move money between the user's own accounts.
NON_SPEND_CATEGORIES: frozenset[str] = frozenset({"Transfers", "Savings", "Income"})

_LOOKUP: dict[str, str] = {name.lower(): name for name in CATEGORIES}


def normalise_category(value: object) -> str:
    """Return the canonical spelling of a category, or ``Misc`` on no match."""
    if not isinstance(value, str):
        return CATCH_ALL_CATEGORY
    return _LOOKUP.get(value.strip().lower(), CATCH_ALL_CATEGORY)


def is_known_category(value: str) -> bool:
    return value in _LOOKUP.values()

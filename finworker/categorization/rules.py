import re

from finworker.canonical.categories import CATCH_ALL_CATEGORY

# First match wins, so narrower patterns come before broader ones.
_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), category)
    for pattern, category in (
        (r"\b(salary|payroll|wages|hmrc refund)\b", "Income"),
        (r"\b(tesco|sainsbury|asda|morrisons|aldi|lidl|waitrose|ocado|co-?op food)\b", "Groceries"),
        (r"\b(deliveroo|just eat|uber \*?eats|mcdonald|nando|pret|greggs|costa|starbucks)\b", "EatingOut"),
        (r"\b(british gas|octopus energy|edf|e\.on|thames water|bt group|virgin media|council tax)\b", "Utilities"),
        (r"\b(mortgage|rent)\b", "RentMortgage"),
        (r"\b(tfl|trainline|national rail|uber(?! \*?eats)|bolt|stagecoach)\b", "Transport"),
        (r"\b(shell|bp|esso|texaco|petrol)\b", "Fuel"),
        (r"\b(netflix|spotify|disney\+?|amazon prime|apple\.com/bill|youtube premium)\b", "Subscriptions"),
        (r"\b(cinema|odeon|vue|ticketmaster|steam)\b", "Entertainment"),
        (r"\b(pharmacy|boots|nhs|dentist|gym|puregym)\b", "Health"),
        (r"\b(insurance|aviva|direct line|admiral)\b", "Insurance"),
        (r"\b(easyjet|ryanair|british airways|airbnb|booking\.com|hotel)\b", "Travel"),
        (r"\b(atm|cash withdrawal|cashpoint)\b", "Cash"),
        (r"\b(isa|savings pot|vanguard|premium bonds)\b", "Savings"),
        (r"\b(transfer|tfr|to a/c|from a/c)\b", "Transfers"),
        (r"\b(credit card payment|loan repayment|klarna|barclaycard)\b", "DebtRepayment"),
        (r"\b(overdraft fee|interest charge|fee)\b", "Fees"),
        (r"\b(charity|donation|justgiving)\b", "GiftsDonations"),
        (r"\b(nursery|childcare)\b", "Childcare"),
        (r"\b(ikea|b&q|wickes|screwfix)\b", "Home"),
        (r"\b(amazon|ebay|argos|john lewis|asos)\b", "Shopping"),
    )
)


def categorize_by_rules(description: str | None) -> str:
    """Match a transaction description against known merchant patterns."""
    if not description:
        return CATCH_ALL_CATEGORY
    for pattern, category in _RULES:
        if pattern.search(description):
            return category
    return CATCH_ALL_CATEGORY

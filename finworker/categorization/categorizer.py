"""Transaction categorization: provider label, then merchant rules, then AI."""

from dataclasses import replace
from pathlib import Path

from finworker.canonical.categories import CATCH_ALL_CATEGORY, CATEGORIES, normalise_category
from finworker.categorization.client_base import BaseCategorizationClient
from finworker.categorization.exceptions import CategorizationError
from finworker.categorization.prompt_loader import load_prompt_template
from finworker.categorization.rules import categorize_by_rules
from finworker.logging.logger import Log
from finworker.normalization.models import Transaction

_MAX_AI_BATCH = 200


class TransactionCategorizer:
    """Assigns a canonical category to every transaction.

    Provider-supplied categories that already normalise to a known category
    are kept. The AI client, when configured, only sees what the rules left
    as ``Misc``, and its answers are normalised again, so an unknown label
    can never reach storage. AI failures leave those transactions as ``Misc``.
    """

    def __init__(
        self,
        *,
        client: BaseCategorizationClient | None = None,
        prompt_template_path: Path | None = None,
    ) -> None:
        self._client = client
        self._prompt_template = load_prompt_template(prompt_template_path)

    def categorize(self, transactions: list[Transaction]) -> list[Transaction]:
        result = []
        for transaction in transactions:
            category = normalise_category(transaction.category)
            if category == CATCH_ALL_CATEGORY:
                category = categorize_by_rules(transaction.description)
            result.append(replace(transaction, category=category))

        pending = [
            i
            for i, t in enumerate(result)
            if t.category == CATCH_ALL_CATEGORY and t.description
        ][:_MAX_AI_BATCH]
        if self._client is None or not pending:
            return result

        try:
            answers = self._client.label_transactions(self._build_prompt(result, pending))
        except CategorizationError as exc:
            Log.warning(f"AI categorization failed, leaving {len(pending)} as Misc: {exc}")
            return result

        for index, label in answers.items():
            if index in pending:
                result[index] = replace(result[index], category=normalise_category(label))
        Log.info(f"AI categorized {len(answers)} of {len(pending)} uncategorized transactions")
        return result

    def _build_prompt(self, transactions: list[Transaction], pending: list[int]) -> str:
        lines = "\n".join(
            f"{i}\t{transactions[i].direction}\t{transactions[i].description}" for i in pending
        )
        return self._prompt_template.format(categories=", ".join(CATEGORIES), transactions=lines)

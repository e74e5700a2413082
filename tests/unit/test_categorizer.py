from unittest.mock import MagicMock

from finworker.categorization.categorizer import TransactionCategorizer
from finworker.categorization.example_client_adapter import ExampleClientAdapter
from finworker.categorization.exceptions import CategorizationError, CategorizationNetworkError
from finworker.categorization.rules import categorize_by_rules
from finworker.normalization.models import Transaction


def _tx(description: str | None, amount: int = -1000, category: str = "Misc") -> Transaction:
    direction = "inflow" if amount >= 0 else "outflow"
    return Transaction("2024-05-01", description, amount, direction, category)


class TestRules:
    def test_known_merchants(self) -> None:
        assert categorize_by_rules("TESCO STORES 1234") == "Groceries"
        assert categorize_by_rules("Deliveroo order") == "EatingOut"
        assert categorize_by_rules("UBER EATS") == "EatingOut"
        assert categorize_by_rules("Uber trip") == "Transport"
        assert categorize_by_rules("ACME LTD SALARY") == "Income"

    def test_unknown_is_misc(self) -> None:
        assert categorize_by_rules("ZXCV 123") == "Misc"
        assert categorize_by_rules(None) == "Misc"


class TestTransactionCategorizer:
    def test_keeps_known_provider_category(self) -> None:
        result = TransactionCategorizer().categorize([_tx("TESCO", category="Shopping")])
        assert result[0].category == "Shopping"

    def test_rules_fill_misc(self) -> None:
        result = TransactionCategorizer().categorize([_tx("Netflix.com")])
        assert result[0].category == "Subscriptions"

    def test_ai_only_sees_uncategorized(self) -> None:
        client = MagicMock()
        client.label_transactions.return_value = {1: "home"}
        categorizer = TransactionCategorizer(client=client)

        result = categorizer.categorize([_tx("TESCO"), _tx("Local hardware shop")])

        assert [t.category for t in result] == ["Groceries", "Home"]
        prompt = client.label_transactions.call_args.args[0]
        assert "1\toutflow\tLocal hardware shop" in prompt
        assert "TESCO" not in prompt

    def test_ai_unknown_label_becomes_misc(self) -> None:
        client = MagicMock()
        client.label_transactions.return_value = {0: "Gadgets"}

        result = TransactionCategorizer(client=client).categorize([_tx("Widget World")])

        assert result[0].category == "Misc"

    def test_ai_answer_for_other_index_is_ignored(self) -> None:
        client = MagicMock()
        client.label_transactions.return_value = {0: "Travel", 1: "Travel"}

        result = TransactionCategorizer(client=client).categorize(
            [_tx("TESCO"), _tx("Widget World")]
        )

        assert [t.category for t in result] == ["Groceries", "Travel"]

    def test_ai_failure_leaves_misc(self) -> None:
        client = MagicMock()
        client.label_transactions.side_effect = CategorizationNetworkError("down")

        result = TransactionCategorizer(client=client).categorize([_tx("Widget World")])

        assert result[0].category == "Misc"

    def test_ai_bad_answer_leaves_misc(self) -> None:
        client = MagicMock()
        client.label_transactions.side_effect = CategorizationError("AI returned invalid JSON")

        result = TransactionCategorizer(client=client).categorize([_tx("Widget World")])

        assert result[0].category == "Misc"

    def test_no_ai_call_when_nothing_pending(self) -> None:
        client = MagicMock()

        TransactionCategorizer(client=client).categorize([_tx("TESCO"), _tx(None)])

        client.label_transactions.assert_not_called()

    def test_with_example_adapter(self) -> None:
        categorizer = TransactionCategorizer(client=ExampleClientAdapter())

        result = categorizer.categorize([_tx("Widget"), _tx("Gizmo")])

        assert [t.category for t in result] == ["Misc", "Misc"]


class TestExampleClientAdapter:
    def test_answers_misc_for_each_index(self) -> None:
        labels = ExampleClientAdapter().label_transactions("header\n3\toutflow\tA\n7\tinflow\tB")

        assert labels == {3: "Misc", 7: "Misc"}

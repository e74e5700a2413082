from unittest.mock import MagicMock, patch

from finworker.database.models import AccountRecord, DocumentJobRecord
from finworker.database.repositories.account_repository import AccountRepository
from finworker.identity.account_resolver import (
    AccountIdentity,
    AccountResolver,
    derive_identity,
)
from finworker.normalization.models import StatementMetricsV1, StatementTotals


def _statement(**overrides: object) -> StatementMetricsV1:
    values: dict = {
        "institution_name": "Monzo",
        "institution_raw": "MONZO BANK LTD",
        "period_start": "2024-05-01",
        "period_end": "2024-05-31",
        "opening_balance": 0,
        "closing_balance": 0,
        "currency": "GBP",
        "totals": StatementTotals(),
        "account_number_masked": "••••5678",
    }
    values.update(overrides)
    return StatementMetricsV1(**values)


def _job(candidate_type: str | None = "statement") -> DocumentJobRecord:
    return DocumentJobRecord(
        id=1, user_id="u1", file_id="f1", status="in_progress", attempts=0,
        candidate_type=candidate_type,
    )


def _account(raw_names: list[str]) -> AccountRecord:
    return AccountRecord(
        id=7,
        user_id="u1",
        institution_name="Monzo",
        account_number_masked="••••5678",
        account_type="current",
        display_name="Monzo - current (••••5678)",
        raw_institution_names=raw_names,
    )


class TestDeriveIdentity:
    def test_fingerprint_and_display_name(self) -> None:
        identity = derive_identity(_statement(), "statement")
        assert identity == AccountIdentity("Monzo", "••••5678", "current")
        assert identity.fingerprint == "Monzo|••••5678|current"
        assert identity.display_name == "Monzo - current (••••5678)"

    def test_candidate_type_maps_to_account_type(self) -> None:
        assert derive_identity(_statement(), "isa").account_type == "isa"
        assert derive_identity(_statement(), "hmrc").account_type == "current"

    def test_explicit_account_type_wins(self) -> None:
        identity = derive_identity(_statement(account_type=" Savings "), "statement")
        assert identity.account_type == "savings"

    def test_defaults_masked_number(self) -> None:
        identity = derive_identity(_statement(account_number_masked=None), None)
        assert identity.account_number_masked == "••••0000"

    def test_no_institution_returns_none(self) -> None:
        assert derive_identity(_statement(institution_name=None), None) is None


class TestAccountResolver:
    def test_new_account_appends_to_empty_names(self) -> None:
        repo = MagicMock()
        repo.find_by_identity.return_value = None
        repo.upsert_with_plan.return_value = _account(["MONZO BANK LTD"])

        resolution = AccountResolver(repo).resolve(_job(), _statement())

        assert resolution is not None
        kwargs = repo.upsert_with_plan.call_args.kwargs
        assert kwargs["plan"].mode == "append_unique"
        assert kwargs["plan"].resulting_array == ["MONZO BANK LTD"]
        assert kwargs["fingerprint"] == "Monzo|••••5678|current"
        assert resolution.account.id == 7

    def test_existing_account_appends_new_raw_name(self) -> None:
        repo = MagicMock()
        repo.find_by_identity.return_value = _account(["Monzo"])
        repo.upsert_with_plan.return_value = _account(["Monzo", "MONZO BANK LTD"])

        resolution = AccountResolver(repo).resolve(_job(), _statement())

        plan = repo.upsert_with_plan.call_args.kwargs["plan"]
        assert plan.mode == "append_unique"
        assert plan.update == {"append_unique": {"raw_institution_names": ["MONZO BANK LTD"]}}
        assert resolution.plan is plan

    def test_existing_account_with_known_raw_name_is_noop(self) -> None:
        repo = MagicMock()
        repo.find_by_identity.return_value = _account(["MONZO BANK LTD"])
        repo.upsert_with_plan.return_value = _account(["MONZO BANK LTD"])

        AccountResolver(repo).resolve(_job(), _statement())

        assert not repo.upsert_with_plan.call_args.kwargs["plan"].applied

    def test_without_institution_does_nothing(self) -> None:
        repo = MagicMock()
        assert AccountResolver(repo).resolve(_job(), _statement(institution_name=None)) is None
        repo.upsert_with_plan.assert_not_called()

    @patch("finworker.database.repositories.account_repository.get_connection")
    def test_first_sighting_never_overwrites_names_on_conflict(
        self, mock_get_conn: MagicMock
    ) -> None:
        mock_cursor = MagicMock()
        mock_conn = MagicMock()
        mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
        mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
        mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
        mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
        mock_cursor.fetchone.return_value = {
            "id": 7,
            "user_id": "u1",
            "institution_name": "Monzo",
            "account_number_masked": "••••5678",
            "account_type": "current",
            "display_name": "Monzo - current (••••5678)",
            "raw_institution_names": ["MONZO BANK LTD", "Monzo Bank"],
            "fingerprints": ["Monzo|••••5678|current"],
            "first_seen_at": None,
            "last_seen_at": None,
        }
        repo = AccountRepository()

        with patch.object(repo, "find_by_identity", return_value=None):
            AccountResolver(repo).resolve(_job(), _statement(institution_raw="Monzo Bank"))

        sql, params = mock_cursor.execute.call_args.args
        conflict_branch = sql.split("DO UPDATE SET", 1)[1]
        assert "raw_institution_names = %s::text[]" not in conflict_branch
        assert "unnest" in conflict_branch
        assert params[5] == ["Monzo Bank"]
        assert params[-1] == ["Monzo Bank"]

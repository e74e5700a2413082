from unittest.mock import patch

import pytest

from finworker.database.models import DocumentJobRecord
from finworker.database.repositories.account_repository import AccountRepository
from finworker.identity.account_resolver import AccountResolver
from finworker.identity.raw_institution_names import ElementUpdateOptions, plan_update
from finworker.normalization.models import StatementMetricsV1, StatementTotals

IDENTITY = {
    "institution_name": "Monzo",
    "account_number_masked": "••••5678",
    "account_type": "current",
    "display_name": "Monzo - current (••••5678)",
    "fingerprint": "Monzo|••••5678|current",
}


@pytest.mark.integration
class TestUpsertWithPlan:
    def test_insert_then_append_unique(self, user_id: str) -> None:
        repo = AccountRepository()
        created = repo.upsert_with_plan(
            user_id=user_id, plan=plan_update("replace", [], ["MONZO BANK LTD"]), **IDENTITY
        )
        assert created.raw_institution_names == ["MONZO BANK LTD"]
        assert created.fingerprints == ["Monzo|••••5678|current"]

        updated = repo.upsert_with_plan(
            user_id=user_id,
            plan=plan_update("append_unique", created.raw_institution_names, ["Monzo", "MONZO BANK LTD"]),
            **IDENTITY,
        )

        assert updated.id == created.id
        assert updated.raw_institution_names == ["MONZO BANK LTD", "Monzo"]
        assert updated.fingerprints == ["Monzo|••••5678|current"]

    def test_element_update_replaces_one_value(self, user_id: str) -> None:
        repo = AccountRepository()
        repo.upsert_with_plan(
            user_id=user_id, plan=plan_update("replace", [], ["A", "B"]), **IDENTITY
        )

        updated = repo.upsert_with_plan(
            user_id=user_id,
            plan=plan_update("element_update", ["A", "B"], ["C"], ElementUpdateOptions("B")),
            **IDENTITY,
        )

        assert updated.raw_institution_names == ["A", "C"]

    def test_find_by_identity(self, user_id: str) -> None:
        repo = AccountRepository()
        repo.upsert_with_plan(user_id=user_id, plan=plan_update("replace", [], ["X"]), **IDENTITY)

        found = repo.find_by_identity(user_id, "Monzo", "••••5678", "current")

        assert found is not None
        assert found.display_name == "Monzo - current (••••5678)"


def _statement(raw_name: str) -> StatementMetricsV1:
    return StatementMetricsV1(
        institution_name="Monzo",
        institution_raw=raw_name,
        period_start="2024-05-01",
        period_end="2024-05-31",
        opening_balance=0,
        closing_balance=0,
        currency="GBP",
        totals=StatementTotals(),
        account_number_masked="••••5678",
    )


@pytest.mark.integration
class TestConcurrentFirstSighting:
    def test_both_raw_names_survive(self, user_id: str) -> None:
        repo = AccountRepository()
        job = DocumentJobRecord(
            id=1, user_id=user_id, file_id="f1", status="in_progress", attempts=0,
            candidate_type="statement",
        )

        # Both workers looked the account up before either one inserted it.
        with patch.object(repo, "find_by_identity", return_value=None):
            AccountResolver(repo).resolve(job, _statement("MONZO BANK LTD"))
            AccountResolver(repo).resolve(job, _statement("Monzo Bank"))

        stored = repo.find_by_identity(user_id, "Monzo", "••••5678", "current")
        assert stored is not None
        assert stored.raw_institution_names == ["MONZO BANK LTD", "Monzo Bank"]

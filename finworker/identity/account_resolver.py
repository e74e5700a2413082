from dataclasses import dataclass

from finworker.canonical.pii import BULLET
from finworker.database.models import AccountRecord, DocumentJobRecord
from finworker.database.repositories.account_repository import AccountRepository
from finworker.identity.raw_institution_names import (
    APPEND_UNIQUE,
    SET,
    UpdatePlan,
    ensure_single_operator_or_raise,
    merge_updates,
    normalize_input,
    plan_update,
)
from finworker.logging.logger import Log
from finworker.normalization.models import StatementMetricsV1

DEFAULT_ACCOUNT_NUMBER_MASKED = f"{BULLET * 4}0000"

_ACCOUNT_TYPES_BY_CANDIDATE = {
    "isa": "isa",
    "pension": "pension",
    "investment": "investment",
    "savings": "savings",
}


@dataclass(frozen=True)
class AccountIdentity:
    institution_name: str
    account_number_masked: str
    account_type: str

    @property
    def fingerprint(self) -> str:
        return f"{self.institution_name}|{self.account_number_masked}|{self.account_type}"

    @property
    def display_name(self) -> str:
        return f"{self.institution_name} - {self.account_type} ({self.account_number_masked})"


@dataclass(frozen=True)
class AccountResolution:
    account: AccountRecord
    plan: UpdatePlan


def derive_identity(
    statement: StatementMetricsV1, candidate_type: str | None
) -> AccountIdentity | None:
    """Canonical account identity for a statement; None without an institution."""
    if not statement.institution_name:
        return None
    account_type = (statement.account_type or "").strip().lower() or _ACCOUNT_TYPES_BY_CANDIDATE.get(
        candidate_type or "", "current"
    )
    return AccountIdentity(
        institution_name=statement.institution_name,
        account_number_masked=statement.account_number_masked or DEFAULT_ACCOUNT_NUMBER_MASKED,
        account_type=account_type,
    )


class AccountResolver:
    """Ensures the canonical account for a statement exists and records raw names."""

    def __init__(self, account_repo: AccountRepository) -> None:
        self._account_repo = account_repo

    def resolve(
        self, job: DocumentJobRecord, statement: StatementMetricsV1
    ) -> AccountResolution | None:
        identity = derive_identity(statement, job.candidate_type)
        if identity is None:
            Log.warning(f"Job {job.id}: statement has no institution, account not resolved")
            return None

        existing = self._account_repo.find_by_identity(
            job.user_id,
            identity.institution_name,
            identity.account_number_masked,
            identity.account_type,
        )
        candidates = normalize_input(statement.institution_raw)
        # A concurrent first sighting may insert the row between the lookup
        # and the upsert, so names are only ever appended.
        current = existing.raw_institution_names if existing else []
        plan = plan_update("append_unique", current, candidates)

        base_update = {
            SET: {"last_seen_at": "now()"},
            APPEND_UNIQUE: {"fingerprints": [identity.fingerprint]},
        }
        ensure_single_operator_or_raise(merge_updates(base_update, plan.update))

        account = self._account_repo.upsert_with_plan(
            user_id=job.user_id,
            institution_name=identity.institution_name,
            account_number_masked=identity.account_number_masked,
            account_type=identity.account_type,
            display_name=identity.display_name,
            fingerprint=identity.fingerprint,
            plan=plan,
        )
        Log.info(
            f"Job {job.id}: account {account.id} resolved ({identity.fingerprint})",
            job_id=job.id,
            raw_names_plan=plan.summary.as_log_fields(),
        )
        return AccountResolution(account=account, plan=plan)

from typing import Any

from psycopg.rows import dict_row

from finworker.database.connection import get_connection
from finworker.database.models import AccountRecord
from finworker.identity.raw_institution_names import (
    APPEND_UNIQUE,
    FIELD,
    SET,
    UpdatePlan,
    ensure_single_operator_or_raise,
)

_COLUMNS = """
    id, user_id, institution_name, account_number_masked, account_type,
    display_name, raw_institution_names, fingerprints, first_seen_at, last_seen_at
"""

_APPEND_UNIQUE_SQL = (
    "raw_institution_names = accounts.raw_institution_names || ARRAY("
    "SELECT v FROM unnest(%s::text[]) WITH ORDINALITY AS t(v, n) "
    "WHERE NOT v = ANY(accounts.raw_institution_names) ORDER BY n)"
)


def build_raw_names_assignment(plan: UpdatePlan) -> tuple[str, list[Any]]:
    """Translate a validated plan into one SQL SET fragment and its parameters.

    Returns ("", []) for a no-op plan.

    Raises:
        IdentityConflictError: the plan touches the field more than once.
        ValueError: the plan uses an operator/path this repository cannot express.
    """
    ensure_single_operator_or_raise(plan.update)
    for operator, payload in plan.update.items():
        for path, value in payload.items():
            if path == FIELD and operator == SET:
                return "raw_institution_names = %s::text[]", [list(value)]
            if path == FIELD and operator == APPEND_UNIQUE:
                return _APPEND_UNIQUE_SQL, [list(value)]
            if path.startswith(f"{FIELD}.$[") and operator == SET and plan.array_filters:
                identifier = path[len(FIELD) + 3 : -1]
                match_value = plan.array_filters[0][identifier]
                return (
                    "raw_institution_names = array_replace(accounts.raw_institution_names, %s, %s)",
                    [match_value, value],
                )
            if path.startswith(FIELD):
                raise ValueError(f"Unsupported update on {path} via {operator}")
    return "", []


class AccountRepository:
    """Database operations for the accounts table."""

    def find_by_identity(
        self,
        user_id: str,
        institution_name: str,
        account_number_masked: str,
        account_type: str,
    ) -> AccountRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM accounts
                    WHERE user_id = %s AND institution_name = %s
                      AND account_number_masked = %s AND account_type = %s
                    """,
                    (user_id, institution_name, account_number_masked, account_type),
                )
                row = cur.fetchone()
        return AccountRecord(**row) if row else None

    def upsert_with_plan(
        self,
        *,
        user_id: str,
        institution_name: str,
        account_number_masked: str,
        account_type: str,
        display_name: str,
        fingerprint: str,
        plan: UpdatePlan,
    ) -> AccountRecord:
        """Insert the account or touch the existing one, applying the raw-name plan.

        New rows take the plan's resulting array; existing rows get the plan's
        single operator. Fingerprints are appended only when absent.
        """
        assignment, assignment_params = build_raw_names_assignment(plan)
        extra_set = f", {assignment}" if assignment else ""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO accounts
                        (user_id, institution_name, account_number_masked, account_type,
                         display_name, raw_institution_names, fingerprints)
                    VALUES (%s, %s, %s, %s, %s, %s::text[], ARRAY[%s]::text[])
                    ON CONFLICT (user_id, institution_name, account_number_masked, account_type)
                    DO UPDATE SET
                        last_seen_at = NOW(),
                        fingerprints = CASE
                            WHEN %s = ANY(accounts.fingerprints) THEN accounts.fingerprints
                            ELSE array_append(accounts.fingerprints, %s)
                        END{extra_set}
                    RETURNING {_COLUMNS}
                    """,
                    (
                        user_id,
                        institution_name,
                        account_number_masked,
                        account_type,
                        display_name,
                        plan.resulting_array,
                        fingerprint,
                        fingerprint,
                        fingerprint,
                        *assignment_params,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(f"Upsert of account {display_name} returned no row")
        return AccountRecord(**row)

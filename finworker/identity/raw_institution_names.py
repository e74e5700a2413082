"""Update planning for the ``raw_institution_names`` array of an account.

An update is described as an operator document, e.g.
``{"append_unique": {"raw_institution_names": ["Trust"]}}``, wrapped in an
``UpdatePlan``. Plans are validated by ``ensure_single_operator_or_raise``
before the account repository translates them into SQL.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from finworker.identity.exceptions import ElementNotFoundError, IdentityConflictError

FIELD = "raw_institution_names"

SET = "set"
APPEND_UNIQUE = "append_unique"

UpdateMode = Literal["replace", "append_unique", "element_update"]

_SUMMARY_SAMPLE_SIZE = 5


@dataclass(frozen=True)
class ElementUpdateOptions:
    match_value: str
    identifier: str = "i"


@dataclass(frozen=True)
class PlanSummary:
    """Loggable description of what a plan touches."""

    mode: str
    operators: list[str] = field(default_factory=list)
    paths: list[str] = field(default_factory=list)
    additions_sample: list[str] = field(default_factory=list)
    additions_count: int = 0
    resulting_length: int = 0
    array_filters: bool = False

    def as_log_fields(self) -> dict[str, object]:
        return {
            "mode": self.mode,
            "operators": list(self.operators),
            "paths": list(self.paths),
            "additions_sample": self.additions_sample[:_SUMMARY_SAMPLE_SIZE],
            "additions_count": self.additions_count,
            "resulting_length": self.resulting_length,
            "array_filters": self.array_filters,
        }


@dataclass(frozen=True)
class UpdatePlan:
    mode: str
    update: dict[str, dict[str, Any]]
    summary: PlanSummary
    resulting_array: list[str]
    applied: bool
    array_filters: list[dict[str, Any]] | None = None


def normalize_input(raw: object) -> list[str]:
    """Flatten a string, mapping or sequence into non-empty trimmed strings.

    Mapping values keep their iteration order; ``None`` yields ``[]``.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        trimmed = raw.strip()
        return [trimmed] if trimmed else []
    if isinstance(raw, Mapping):
        values: list[object] = list(raw.values())
    elif isinstance(raw, (list, tuple)):
        values = list(raw)
    else:
        return []
    result = []
    for value in values:
        if value is None:
            continue
        trimmed = str(value).strip()
        if trimmed:
            result.append(trimmed)
    return result


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _clean(values: list[str]) -> list[str]:
    return _dedupe([v.strip() for v in values if v and v.strip()])


def noop_plan(current: list[str], mode: str = "none") -> UpdatePlan:
    resulting = _clean(current)
    return UpdatePlan(
        mode=mode,
        update={},
        summary=PlanSummary(mode=mode, resulting_length=len(resulting)),
        resulting_array=resulting,
        applied=False,
    )


def plan_update(
    mode: UpdateMode,
    current: list[str],
    candidates: list[str],
    options: ElementUpdateOptions | None = None,
) -> UpdatePlan:
    """Build the single-operator update that moves ``current`` towards ``candidates``.

    Raises:
        ElementNotFoundError: element_update whose match_value is not present.
        ValueError: unknown mode, or element_update without options.
    """
    current_clean = _clean(current)
    incoming = _clean(candidates)

    if mode == "replace":
        resulting = incoming
        applied = resulting != current_clean
        return UpdatePlan(
            mode=mode,
            update={SET: {FIELD: resulting}} if applied else {},
            summary=PlanSummary(
                mode=mode,
                operators=[SET] if applied else [],
                paths=[FIELD] if applied else [],
                additions_sample=resulting[:_SUMMARY_SAMPLE_SIZE],
                additions_count=len(resulting),
                resulting_length=len(resulting),
            ),
            resulting_array=resulting,
            applied=applied,
        )

    if mode == "append_unique":
        additions = [value for value in incoming if value not in current_clean]
        resulting = current_clean + additions
        return UpdatePlan(
            mode=mode,
            update={APPEND_UNIQUE: {FIELD: additions}} if additions else {},
            summary=PlanSummary(
                mode=mode,
                operators=[APPEND_UNIQUE] if additions else [],
                paths=[FIELD] if additions else [],
                additions_sample=additions[:_SUMMARY_SAMPLE_SIZE],
                additions_count=len(additions),
                resulting_length=len(resulting),
            ),
            resulting_array=resulting,
            applied=bool(additions),
        )

    if mode == "element_update":
        if options is None:
            raise ValueError("element_update requires options with a match_value")
        if options.match_value not in current_clean:
            raise ElementNotFoundError(
                f"'{options.match_value}' is not present in {FIELD}"
            )
        if not incoming:
            return noop_plan(current_clean, mode)
        replacement = incoming[0]
        index = current_clean.index(options.match_value)
        resulting = list(current_clean)
        resulting[index] = replacement
        path = f"{FIELD}.$[{options.identifier}]"
        return UpdatePlan(
            mode=mode,
            update={SET: {path: replacement}},
            array_filters=[{options.identifier: options.match_value}],
            summary=PlanSummary(
                mode=mode,
                operators=[SET],
                paths=[path],
                additions_sample=[replacement],
                additions_count=1,
                resulting_length=len(resulting),
                array_filters=True,
            ),
            resulting_array=resulting,
            applied=current_clean[index] != replacement,
        )

    raise ValueError(f"Unsupported update mode: {mode}")


def _touches_field(path: str) -> bool:
    return path == FIELD or path.startswith(f"{FIELD}.")


def ensure_single_operator_or_raise(update: Mapping[str, Any]) -> None:
    """Reject update documents that touch raw_institution_names more than once.

    Raises:
        IdentityConflictError: two operators on the field, or a root write
            combined with sub-path writes.
    """
    touched: dict[str, list[str]] = {}
    for operator, payload in update.items():
        if not isinstance(payload, Mapping):
            continue
        paths = [path for path in payload if _touches_field(path)]
        if paths:
            touched[operator] = paths

    if len(touched) > 1:
        raise IdentityConflictError(
            f"Conflicting operators on {FIELD}: {', '.join(touched)}"
        )
    for paths in touched.values():
        if FIELD in paths and len(paths) > 1:
            raise IdentityConflictError(
                f"Conflicting updates on {FIELD} root and sub-paths"
            )


def merge_updates(
    base: Mapping[str, Mapping[str, Any]],
    addition: Mapping[str, Mapping[str, Any]],
) -> dict[str, dict[str, Any]]:
    """Combine two operator documents, merging payloads per operator."""
    merged: dict[str, dict[str, Any]] = {op: dict(payload) for op, payload in base.items()}
    for operator, payload in addition.items():
        if not isinstance(payload, Mapping):
            continue
        merged.setdefault(operator, {}).update(payload)
    return merged

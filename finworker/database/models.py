from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class DocumentJobRecord:
    """Represents a row from the document_jobs table."""

    id: int
    user_id: str
    file_id: str
    status: str
    attempts: int
    original_name: str = ""
    storage_disk: str = "local"
    content_hash: str | None = None
    candidate_type: str | None = None
    upload_state: str = "succeeded"
    process_state: str = "pending"
    retry_at: datetime | None = None
    last_error_code: str | None = None
    last_error_message: str | None = None
    schema_version: str | None = None
    parser_version: str | None = None
    prompt_version: str | None = None
    model: str | None = None
    previous_status: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class InsightRecord:
    """Represents a row from the document_insights table."""

    user_id: str
    file_id: str
    schema_version: str
    content_hash: str
    catalogue_key: str
    status: str = "success"
    status_reason: str | None = None
    document_date: str | None = None
    document_month: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] | None = None
    metrics_v1: dict[str, Any] | None = None
    transactions: list[dict[str, Any]] = field(default_factory=list)
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class AccountRecord:
    """Represents a row from the accounts table."""

    id: int
    user_id: str
    institution_name: str
    account_number_masked: str
    account_type: str
    display_name: str
    raw_institution_names: list[str] = field(default_factory=list)
    fingerprints: list[str] = field(default_factory=list)
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None


@dataclass
class AnalyticsSnapshotRecord:
    """Represents a row from the analytics_snapshots table."""

    user_id: str
    period: str
    status: str
    status_reason: str | None = None
    sources: dict[str, Any] = field(default_factory=dict)
    totals: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    built_at: datetime | None = None


@dataclass
class DeadLetterRecord:
    """Represents a row from the dead_letter_records table."""

    user_id: str
    file_id: str
    job_id: int
    reason: str
    details: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    created_at: datetime | None = None

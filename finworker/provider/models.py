from dataclasses import dataclass, field
from typing import Any, Literal

JobStatus = Literal["queued", "processing", "completed", "failed"]

STATUS_ALIASES: dict[str, JobStatus] = {
    "queued": "queued",
    "pending": "queued",
    "processing": "processing",
    "running": "processing",
    "in_progress": "processing",
    "completed": "completed",
    "complete": "completed",
    "succeeded": "completed",
    "success": "completed",
    "failed": "failed",
    "error": "failed",
    "errored": "failed",
}


def normalize_status(value: object) -> JobStatus:
    """Fold provider status synonyms into the four job states; unknown means still processing."""
    return STATUS_ALIASES.get(str(value or "").strip().lower(), "processing")


@dataclass(frozen=True)
class FileRef:
    """Either inline bytes with a filename, or a URL the provider can fetch."""

    filename: str
    content: bytes | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        if (self.content is None) == (self.url is None):
            raise ValueError("FileRef needs exactly one of content or url")


@dataclass(frozen=True)
class SubmitResult:
    document_id: str
    job_id: str


@dataclass(frozen=True)
class ProviderJob:
    job_id: str
    status: JobStatus
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderPayload:
    """Document result with any ``standardizations`` envelope already removed."""

    document_id: str
    data: dict[str, Any]
    document_type: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

from typing import Any


class ProviderError(Exception):
    """Raised when the extraction provider call fails.

    ``status`` is the HTTP status (None for transport failures) and ``body``
    the raw response text, both kept for diagnostics.
    """

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def details(self) -> dict[str, Any]:
        return {"status": self.status, "body": self.body}


class ProviderNotFoundError(ProviderError):
    """404 from the provider; during polling the job may not be indexed yet."""

    code = "PROVIDER_NOT_FOUND"


class ProviderTimeoutError(ProviderError):
    """Polling exceeded its timeout before the job reached a terminal status."""

    code = "PROVIDER_TIMEOUT"


class ProviderJobFailedError(ProviderError):
    """The provider reported the job itself as failed."""

    code = "PROVIDER_JOB_FAILED"

    def __init__(self, message: str, job: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.job = job or {}

    def details(self) -> dict[str, Any]:
        return {"status": self.status, "job": self.job}

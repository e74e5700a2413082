import base64
import time
from collections.abc import Callable
from typing import Any

import httpx

from finworker.logging.logger import Log
from finworker.provider.exceptions import (
    ProviderError,
    ProviderJobFailedError,
    ProviderNotFoundError,
    ProviderTimeoutError,
)
from finworker.provider.models import (
    FileRef,
    ProviderJob,
    ProviderPayload,
    SubmitResult,
    normalize_status,
)

_MIN_DELAY_CAP_MS = 8000
_MAX_BODY_CHARS = 2000


def next_poll_delay(previous_ms: int, interval_ms: int) -> int:
    """Linear growth by ``interval_ms``, capped at ``max(interval_ms * 4, 8000)``."""
    return min(previous_ms + interval_ms, max(interval_ms * 4, _MIN_DELAY_CAP_MS))


def resolve_payload(document_id: str, body: dict[str, Any]) -> ProviderPayload:
    """Collapse the provider's document response into a single shape.

    A top-level ``data`` object wins; otherwise the first ``standardizations``
    entry is unwrapped; otherwise the body itself is the payload.
    """
    source: dict[str, Any] = body
    data = body.get("data")
    if not isinstance(data, dict):
        standardizations = body.get("standardizations")
        if isinstance(standardizations, list) and standardizations and isinstance(
            standardizations[0], dict
        ):
            source = standardizations[0]
        nested = source.get("data")
        data = nested if isinstance(nested, dict) else source

    document_type = None
    for candidate in (source, body):
        for key in ("schemaName", "schema", "documentType", "type"):
            value = candidate.get(key)
            if isinstance(value, str) and value.strip():
                document_type = value.strip()
                break
        if document_type:
            break
    if document_type is None:
        classification = body.get("classification")
        if isinstance(classification, dict) and classification.get("name"):
            document_type = str(classification["name"])

    return ProviderPayload(
        document_id=document_id, data=data, document_type=document_type, raw=body
    )


class ExtractionProviderClient:
    """HTTP client for the asynchronous document extraction provider.

    ``sleep`` and ``clock`` are injectable so polling can be driven in tests
    without real waiting.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 30,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = http_client or httpx.Client(timeout=timeout_seconds)
        self._base_url = base_url.rstrip("/")
        self._headers = {"X-API-Key": api_key, "Accept": "application/json"}
        self._sleep = sleep
        self._clock = clock

    def close(self) -> None:
        self._client.close()

    def submit(self, workflow_id: str, file_ref: FileRef) -> SubmitResult:
        """Submit a document to a workflow and return the provider's ids."""
        if file_ref.content is not None:
            document: dict[str, Any] = {
                "file": {
                    "contents": base64.b64encode(file_ref.content).decode("ascii"),
                    "filename": file_ref.filename,
                }
            }
        else:
            document = {"url": file_ref.url}
        body = self._request(
            "POST", "/document", json={"workflowId": workflow_id, "document": document}
        )
        document_id = body.get("documentId")
        job_id = body.get("jobId")
        if not document_id or not job_id:
            raise ProviderError(
                "Provider submit response is missing documentId or jobId",
                status=200,
                body=str(body)[:_MAX_BODY_CHARS],
            )
        Log.info(f"Submitted {file_ref.filename} to provider: document {document_id}, job {job_id}")
        return SubmitResult(document_id=str(document_id), job_id=str(job_id))

    def get_job(self, job_id: str) -> ProviderJob:
        body = self._request("GET", f"/job/{job_id}")
        status = body.get("status")
        if status is None and isinstance(body.get("data"), dict):
            status = body["data"].get("status")
        return ProviderJob(job_id=job_id, status=normalize_status(status), raw=body)

    def poll_job(self, job_id: str, interval_ms: int, timeout_ms: int) -> ProviderJob:
        """Poll until the job completes.

        Not-found responses are retried like any non-terminal status, since
        the provider may not have indexed a freshly submitted job.

        Raises:
            ProviderTimeoutError: elapsed time reached ``timeout_ms``.
            ProviderJobFailedError: the provider reports the job failed.
            ProviderError: any other HTTP or transport failure.
        """
        started = self._clock()
        delay_ms = interval_ms
        polls = 0
        while True:
            polls += 1
            try:
                job = self.get_job(job_id)
            except ProviderNotFoundError:
                Log.debug(f"Provider job {job_id} not found yet (poll {polls}), retrying")
            else:
                if job.status == "completed":
                    Log.info(f"Provider job {job_id} completed after {polls} polls")
                    return job
                if job.status == "failed":
                    raise ProviderJobFailedError(f"Provider job failed: {job_id}", job=job.raw)

            elapsed_ms = (self._clock() - started) * 1000
            if elapsed_ms >= timeout_ms:
                raise ProviderTimeoutError(
                    f"Provider job timeout: {job_id} after {int(elapsed_ms)} ms"
                )
            self._sleep(delay_ms / 1000)
            delay_ms = next_poll_delay(delay_ms, interval_ms)

    def fetch_result(self, document_id: str) -> ProviderPayload:
        body = self._request("GET", f"/document/{document_id}")
        return resolve_payload(document_id, body)

    def run(
        self, workflow_id: str, file_ref: FileRef, interval_ms: int, timeout_ms: int
    ) -> ProviderPayload:
        """Submit, poll to completion and fetch the result."""
        submitted = self.submit(workflow_id, file_ref)
        self.poll_job(submitted.job_id, interval_ms, timeout_ms)
        return self.fetch_result(submitted.document_id)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            response = self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Provider request timed out: {method} {path}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Provider network error: {method} {path}: {exc}") from exc

        if response.status_code == 404:
            raise ProviderNotFoundError(
                f"Provider returned 404 for {method} {path}",
                status=404,
                body=response.text[:_MAX_BODY_CHARS],
            )
        if response.is_error:
            raise ProviderError(
                f"Provider returned {response.status_code} for {method} {path}",
                status=response.status_code,
                body=response.text[:_MAX_BODY_CHARS],
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError(
                f"Provider returned invalid JSON for {method} {path}",
                status=response.status_code,
                body=response.text[:_MAX_BODY_CHARS],
            ) from exc
        if not isinstance(body, dict):
            raise ProviderError(
                f"Provider returned a non-object body for {method} {path}",
                status=response.status_code,
                body=response.text[:_MAX_BODY_CHARS],
            )
        return body

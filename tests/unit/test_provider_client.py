import base64
import json

import httpx
import pytest

from finworker.provider.client import (
    ExtractionProviderClient,
    next_poll_delay,
    resolve_payload,
)
from finworker.provider.exceptions import (
    ProviderError,
    ProviderJobFailedError,
    ProviderNotFoundError,
    ProviderTimeoutError,
)
from finworker.provider.models import FileRef, normalize_status


class FakeClock:
    """Monotonic clock that only advances when the client sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _make_client(handler, clock: FakeClock | None = None) -> ExtractionProviderClient:
    clock = clock or FakeClock()
    return ExtractionProviderClient(
        api_key="secret",
        base_url="https://provider.test/v1/",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=clock.sleep,
        clock=clock,
    )


class TestNextPollDelay:
    def test_grows_linearly(self) -> None:
        assert next_poll_delay(1000, 1000) == 2000

    def test_capped_at_eight_seconds_for_small_intervals(self) -> None:
        assert next_poll_delay(8000, 1000) == 8000

    def test_capped_at_four_intervals(self) -> None:
        assert next_poll_delay(20000, 5000) == 20000


class TestNormalizeStatus:
    def test_synonyms(self) -> None:
        assert normalize_status("SUCCEEDED") == "completed"
        assert normalize_status("pending") == "queued"
        assert normalize_status("error") == "failed"

    def test_unknown_is_processing(self) -> None:
        assert normalize_status("mystery") == "processing"
        assert normalize_status(None) == "processing"


class TestFileRef:
    def test_requires_exactly_one_source(self) -> None:
        with pytest.raises(ValueError):
            FileRef(filename="a.pdf")
        with pytest.raises(ValueError):
            FileRef(filename="a.pdf", content=b"x", url="https://x")


class TestSubmit:
    def test_posts_inline_document(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers["X-API-Key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"documentId": "d1", "jobId": "j1"})

        result = _make_client(handler).submit("wf", FileRef(filename="a.pdf", content=b"%PDF"))

        assert result.document_id == "d1"
        assert result.job_id == "j1"
        assert seen["url"] == "https://provider.test/v1/document"
        assert seen["api_key"] == "secret"
        assert seen["body"]["workflowId"] == "wf"
        document = seen["body"]["document"]["file"]
        assert base64.b64decode(document["contents"]) == b"%PDF"
        assert document["filename"] == "a.pdf"

    def test_posts_url_document(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"documentId": "d1", "jobId": "j1"})

        _make_client(handler).submit("wf", FileRef(filename="a.pdf", url="https://files/a.pdf"))

        assert seen["body"]["document"] == {"url": "https://files/a.pdf"}

    def test_missing_ids_raises(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, json={"documentId": "d1"}))

        with pytest.raises(ProviderError, match="missing"):
            client.submit("wf", FileRef(filename="a.pdf", content=b"x"))

    def test_http_error_keeps_status_and_body(self) -> None:
        client = _make_client(lambda request: httpx.Response(500, text="upstream down"))

        with pytest.raises(ProviderError) as exc_info:
            client.submit("wf", FileRef(filename="a.pdf", content=b"x"))

        assert exc_info.value.status == 500
        assert exc_info.value.body == "upstream down"

    def test_transport_error_has_no_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderError) as exc_info:
            _make_client(handler).submit("wf", FileRef(filename="a.pdf", content=b"x"))

        assert exc_info.value.status is None


class TestPollJob:
    def test_not_found_then_completed(self) -> None:
        responses = iter(
            [
                httpx.Response(404, text="not found"),
                httpx.Response(200, json={"status": "running"}),
                httpx.Response(200, json={"status": "completed"}),
            ]
        )
        clock = FakeClock()
        client = _make_client(lambda request: next(responses), clock)

        job = client.poll_job("j1", interval_ms=1000, timeout_ms=60000)

        assert job.status == "completed"
        assert clock.sleeps == [1.0, 2.0]

    def test_failed_status_raises(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, json={"status": "failed"}))

        with pytest.raises(ProviderJobFailedError):
            client.poll_job("j1", interval_ms=1000, timeout_ms=60000)

    def test_times_out(self) -> None:
        clock = FakeClock()
        client = _make_client(
            lambda request: httpx.Response(200, json={"status": "processing"}), clock
        )

        with pytest.raises(ProviderTimeoutError, match="j1"):
            client.poll_job("j1", interval_ms=1000, timeout_ms=5000)

        assert clock.now * 1000 >= 5000

    def test_get_job_reads_nested_status(self) -> None:
        client = _make_client(
            lambda request: httpx.Response(200, json={"data": {"status": "complete"}})
        )

        assert client.get_job("j1").status == "completed"

    def test_get_job_not_found_raises(self) -> None:
        client = _make_client(lambda request: httpx.Response(404))

        with pytest.raises(ProviderNotFoundError):
            client.get_job("j1")


class TestResolvePayload:
    def test_top_level_data_wins(self) -> None:
        payload = resolve_payload("d1", {"data": {"payDate": "x"}, "schemaName": "payslip"})
        assert payload.data == {"payDate": "x"}
        assert payload.document_type == "payslip"

    def test_unwraps_first_standardization(self) -> None:
        body = {
            "standardizations": [
                {"schemaName": "bank_statement", "data": {"transactions": []}},
                {"schemaName": "other", "data": {}},
            ]
        }
        payload = resolve_payload("d1", body)
        assert payload.data == {"transactions": []}
        assert payload.document_type == "bank_statement"
        assert payload.raw is body

    def test_body_is_payload_without_envelope(self) -> None:
        payload = resolve_payload("d1", {"payDate": "2024-05-31"})
        assert payload.data == {"payDate": "2024-05-31"}
        assert payload.document_type is None


class TestRun:
    def test_submit_poll_fetch(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"documentId": "d1", "jobId": "j1"})
            if request.url.path.endswith("/job/j1"):
                return httpx.Response(200, json={"status": "completed"})
            return httpx.Response(
                200, json={"standardizations": [{"data": {"payDate": "2024-05-31"}}]}
            )

        payload = _make_client(handler).run(
            "wf", FileRef(filename="a.pdf", content=b"x"), 1000, 60000
        )

        assert payload.document_id == "d1"
        assert payload.data == {"payDate": "2024-05-31"}

"""
Unit tests for the GTmetrix client.

Tests the start/poll/fetch protocol against a mocked API:
- completion through the test state and through a 303 redirect
- error state and poll exhaustion
- credit exhaustion and transient poll failures
"""
import httpx
import pytest

from webaudit.core.errors import AuditError, AuditErrorKind
from webaudit.integrations.base import PerfTestData, score_to_grade
from webaudit.integrations.gtmetrix import GTmetrixClient, GTmetrixConfig

URL = "https://example.com"

REPORT_ATTRIBUTES = {
    "gtmetrix_grade": "B",
    "performance_score": 85,
    "structure_score": 91,
    "fully_loaded_time": 2350,
    "page_bytes": 1572864,
    "page_requests": 42,
    "largest_contentful_paint": 1800,
    "total_blocking_time": 120,
    "cumulative_layout_shift": 0.02,
    "speed_index": 1900,
}


class FakeGTmetrix:
    """Scripted GTmetrix API: one response per poll."""

    def __init__(self, polls, start_status: int = 202):
        self.polls = list(polls)
        self.start_status = start_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/tests"):
            if self.start_status >= 400:
                return httpx.Response(self.start_status, json={"errors": []})
            return httpx.Response(
                self.start_status,
                json={"data": {"id": "t1", "type": "test"}, "meta": {"credits_left": 9.4}},
            )
        if path.endswith("/tests/t1"):
            poll = self.polls.pop(0)
            if isinstance(poll, Exception):
                raise poll
            return poll
        if path.endswith("/reports/r1"):
            return httpx.Response(200, json={"data": {"id": "r1", "attributes": REPORT_ATTRIBUTES}})
        return httpx.Response(404)

    @property
    def poll_count(self) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith("/tests/t1"))


def state(value: str, report: str | None = None, error: str | None = None) -> httpx.Response:
    attributes = {"state": value}
    if report:
        attributes["report"] = report
    if error:
        attributes["error"] = error
    return httpx.Response(200, json={"data": {"id": "t1", "attributes": attributes}})


def make_client(api, max_polls: int = 5, api_key: str = "gt-key-1234") -> GTmetrixClient:
    return GTmetrixClient(
        GTmetrixConfig(api_key=api_key, poll_interval=0, max_polls=max_polls),
        transport=httpx.MockTransport(api),
    )


class TestGTmetrixClient:

    @pytest.mark.asyncio
    async def test_completed_state(self):
        api = FakeGTmetrix([state("queued"), state("started"), state("completed", report="r1")])

        result = await make_client(api).run_audit(URL)

        assert api.poll_count == 3
        assert result.report_id == "r1"
        assert result.report_url == "https://gtmetrix.com/reports/r1"
        assert result.grade == "B"
        assert result.performance_score == 85
        assert result.load_time_s == pytest.approx(2.35)
        assert result.page_size_kb == pytest.approx(1536)
        assert result.requests == 42
        assert result.lcp_s == pytest.approx(1.8)

    @pytest.mark.asyncio
    async def test_start_request_shape(self):
        api = FakeGTmetrix([state("completed", report="r1")])

        await make_client(api).run_audit(URL)

        start = api.requests[0]
        assert start.method == "POST"
        assert start.headers["content-type"] == "application/vnd.api+json"
        assert start.headers["authorization"].startswith("Basic ")
        assert b'"report":"lighthouse"' in start.content.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_redirect_to_report_means_completed(self):
        api = FakeGTmetrix([
            state("started"),
            httpx.Response(303, headers={"Location": "https://gtmetrix.com/api/2.0/reports/r1"}),
        ])

        result = await make_client(api).run_audit(URL)

        assert api.poll_count == 2
        assert result.report_id == "r1"

    @pytest.mark.asyncio
    async def test_error_state(self):
        api = FakeGTmetrix([state("error", error="Page failed to load")])

        with pytest.raises(AuditError) as exc_info:
            await make_client(api).run_audit(URL)

        assert exc_info.value.kind == AuditErrorKind.UPSTREAM_ERROR
        assert "Page failed to load" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_poll_exhaustion_is_timeout(self):
        api = FakeGTmetrix([state("started")] * 3)

        with pytest.raises(AuditError) as exc_info:
            await make_client(api, max_polls=3).run_audit(URL)

        assert exc_info.value.kind == AuditErrorKind.TIMEOUT
        assert api.poll_count == 3

    @pytest.mark.asyncio
    async def test_transient_poll_failures_retried(self):
        request = httpx.Request("GET", "https://gtmetrix.com/api/2.0/tests/t1")
        api = FakeGTmetrix([
            httpx.Response(503),
            httpx.ConnectError("reset", request=request),
            httpx.Response(429),
            state("completed", report="r1"),
        ])

        result = await make_client(api).run_audit(URL)

        assert result.report_id == "r1"
        assert api.poll_count == 4

    @pytest.mark.asyncio
    async def test_no_credits(self):
        api = FakeGTmetrix([], start_status=402)

        with pytest.raises(AuditError) as exc_info:
            await make_client(api).run_audit(URL)

        assert exc_info.value.kind == AuditErrorKind.QUOTA_EXCEEDED

    @pytest.mark.asyncio
    async def test_start_rate_limited(self):
        api = FakeGTmetrix([], start_status=429)

        with pytest.raises(AuditError) as exc_info:
            await make_client(api).run_audit(URL)

        assert exc_info.value.kind == AuditErrorKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        api = FakeGTmetrix([])

        with pytest.raises(AuditError) as exc_info:
            await make_client(api, api_key="").run_audit(URL)

        assert exc_info.value.kind == AuditErrorKind.NOT_CONFIGURED
        assert api.requests == []


class TestSyntheticPerfData:

    def test_deterministic_per_url(self):
        first = GTmetrixClient().fallback(URL, "quota")
        second = GTmetrixClient().fallback(URL, "quota")

        assert first == second
        assert first.is_synthetic is True
        assert first.degradation_reason == "quota"
        assert first.grade == score_to_grade(first.performance_score)

    def test_differs_between_urls(self):
        assert PerfTestData.synthetic(URL, "x") != PerfTestData.synthetic("https://example.org", "x")

    @pytest.mark.parametrize("score,grade", [
        (95, "A"), (90, "A"), (85, "B"), (72, "C"), (60, "D"), (55, "E"), (10, "F"),
    ])
    def test_score_to_grade(self, score, grade):
        assert score_to_grade(score) == grade

"""Test the retrying HTTP client."""
import asyncio

import httpx
import pytest

from spend_monitor.shared.infrastructure.http import (
    HttpRequest,
    HttpResult,
    RetryingHttpClient,
    is_retryable_status,
)


def _scripted(responses):
    """Handler replaying ``responses`` in order; exceptions are raised."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    handler.calls = calls
    return handler


# ===================================================================
# Retry classification
# ===================================================================


class TestRetryableStatus:
    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504, 599])
    def test_retryable(self, status):
        assert is_retryable_status(status)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422])
    def test_not_retryable(self, status):
        assert not is_retryable_status(status)


# ===================================================================
# execute()
# ===================================================================


class TestExecute:
    async def test_success_first_attempt(self, make_http, sleeps):
        handler = _scripted([httpx.Response(200, text="ok")])
        client = make_http(handler)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert result.success
        assert result.body == "ok"
        assert result.attempts == 1
        assert sleeps == []

    async def test_fail_fail_success_waits_two_then_four(self, make_http, sleeps):
        handler = _scripted([
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, text="finally"),
        ])
        client = make_http(handler)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert result.success
        assert result.body == "finally"
        assert result.attempts == 3
        assert sleeps == [2.0, 4.0]
        assert len(handler.calls) == 3

    async def test_client_error_is_not_retried(self, make_http, sleeps):
        handler = _scripted([httpx.Response(400, text="bad request")])
        client = make_http(handler)

        result = await client.execute(HttpRequest("POST", "https://example.test/a", json={}))

        assert not result.success
        assert result.status_code == 400
        assert result.body == "bad request"
        assert len(handler.calls) == 1
        assert sleeps == []

    async def test_throttling_is_retried(self, make_http, sleeps):
        handler = _scripted([httpx.Response(429), httpx.Response(200, text="ok")])
        client = make_http(handler)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert result.success
        assert sleeps == [2.0]

    async def test_transport_errors_exhaust_attempts(self, make_http, sleeps):
        handler = _scripted([httpx.ConnectError("refused")])
        client = make_http(handler)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert not result.success
        assert result.status_code is None
        assert result.body == ""
        assert result.attempts == 3
        assert len(handler.calls) == 3
        assert sleeps == [2.0, 4.0]

    async def test_undecodable_body_is_a_failed_result(self, make_http, sleeps):
        handler = _scripted([
            httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"),
        ])
        client = make_http(handler)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert not result.success
        assert result.status_code is None
        assert result.body == ""
        assert len(handler.calls) == 3
        assert sleeps == [2.0, 4.0]

    async def test_redirect_loop_is_a_failed_result(self, make_http):
        def handler(request):
            raise httpx.TooManyRedirects("loop", request=request)

        client = make_http(handler, max_attempts=1)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert not result.success
        assert result.status_code is None

    async def test_last_body_returned_after_retries(self, make_http):
        handler = _scripted([httpx.Response(500, text="still broken")])
        client = make_http(handler, max_attempts=2)

        result = await client.execute(HttpRequest("GET", "https://example.test/a"))

        assert not result.success
        assert result.status_code == 500
        assert result.body == "still broken"

    async def test_total_timeout_counts_as_retryable(self, make_http, sleeps):
        async def slow(request):
            await asyncio.sleep(1)
            return httpx.Response(200)

        client = make_http(slow, max_time=0.01, max_attempts=2)

        result = await client.execute(HttpRequest("GET", "https://example.test/slow"))

        assert not result.success
        assert result.status_code is None
        assert sleeps == [2.0]

    async def test_params_and_headers_are_sent(self, make_http):
        handler = _scripted([httpx.Response(200)])
        client = make_http(handler)

        await client.execute(HttpRequest(
            "GET",
            "https://example.test/data",
            headers={"X-Test": "1"},
            params={"vf_Account Name": "Acme Corp"},
        ))

        sent = handler.calls[0]
        assert sent.headers["X-Test"] == "1"
        assert sent.url.params["vf_Account Name"] == "Acme Corp"


# ===================================================================
# Policy and result helpers
# ===================================================================


class TestPolicy:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryingHttpClient(max_attempts=0)

    def test_worst_case_seconds_defaults(self):
        client = RetryingHttpClient()
        assert client.worst_case_seconds() == 3 * 30.0 + 2.0 + 4.0

    def test_worst_case_single_attempt_has_no_backoff(self):
        client = RetryingHttpClient(max_attempts=1, max_time=5)
        assert client.worst_case_seconds() == 5


class TestHttpResult:
    def test_json_decodes(self):
        assert HttpResult('{"ok": true}', True).json() == {"ok": True}

    def test_json_empty_body(self):
        assert HttpResult("", True).json() is None

    def test_json_invalid_body(self):
        assert HttpResult("<html>", False).json() is None


class TestHttpRequest:
    def test_log_name_prefers_label(self):
        request = HttpRequest("POST", "https://api.test/botSECRET/send", label="telegram.sendMessage")
        assert request.log_name == "telegram.sendMessage"

    def test_log_name_falls_back_to_url(self):
        assert HttpRequest("GET", "https://api.test/x").log_name == "https://api.test/x"

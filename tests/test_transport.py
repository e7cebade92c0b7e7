import asyncio

import httpx
import pytest

from recyclescan.ai.transport import RetryingTransport, backoff_delay
from recyclescan.errors import RetriesExhaustedError, TerminalRequestError, TransportError
from tests.fakes import RecordingSleep, gemini_reply

ENDPOINT = "https://example.test/v1beta/models/m:generateContent"


def _transport(handler, max_attempts=5, min_delay=0.5, jitter=lambda a, b: 0.0):
    calls = []

    def recording(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return handler(request, len(calls))

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    sleep = RecordingSleep()
    t = RetryingTransport(client, max_attempts=max_attempts, min_delay=min_delay, sleep=sleep, jitter=jitter)
    return t, calls, sleep


def test_success_returns_on_first_attempt() -> None:
    t, calls, sleep = _transport(lambda req, n: httpx.Response(200, json=gemini_reply("ok")))

    resp = asyncio.run(t.send(ENDPOINT, {"a": 1}, params={"key": "secret"}))

    assert resp.status_code == 200
    assert len(calls) == 1
    assert calls[0].url.params["key"] == "secret"
    assert calls[0].method == "POST"
    assert sleep.delays == []


def test_malformed_request_is_not_retried() -> None:
    t, calls, sleep = _transport(
        lambda req, n: httpx.Response(400, json={"error": {"message": "Invalid inlineData"}})
    )

    with pytest.raises(TerminalRequestError) as exc:
        asyncio.run(t.send(ENDPOINT, {}))

    assert len(calls) == 1
    assert sleep.delays == []
    assert exc.value.kind == "terminal_request"
    assert exc.value.status_code == 400
    assert "Invalid inlineData" in str(exc.value)


def test_transient_failures_exhaust_the_budget() -> None:
    t, calls, sleep = _transport(lambda req, n: httpx.Response(503, text="overloaded"), max_attempts=4)

    with pytest.raises(RetriesExhaustedError) as exc:
        asyncio.run(t.send(ENDPOINT, {}))

    assert len(calls) == 4
    # one sleep between each pair of attempts
    assert len(sleep.delays) == 3
    for attempt, delay in enumerate(sleep.delays):
        assert delay >= 0.5 * 2 ** attempt
    assert exc.value.attempts == 4
    assert "503" in str(exc.value.last_error)
    assert isinstance(exc.value, TransportError)


def test_delays_include_jitter_within_one_base_unit() -> None:
    t, _, sleep = _transport(
        lambda req, n: httpx.Response(429),
        max_attempts=3,
        min_delay=1.0,
        jitter=lambda lo, hi: hi,
    )

    with pytest.raises(RetriesExhaustedError):
        asyncio.run(t.send(ENDPOINT, {}))

    assert sleep.delays == [2.0, 3.0]


def test_network_errors_are_retried_then_succeed() -> None:
    def handler(req, n):
        if n < 3:
            raise httpx.ConnectError("connection refused", request=req)
        return httpx.Response(200, json=gemini_reply("ok"))

    t, calls, sleep = _transport(handler)

    resp = asyncio.run(t.send(ENDPOINT, {}))

    assert resp.status_code == 200
    assert len(calls) == 3
    assert sleep.delays == [0.5, 1.0]


def test_timeouts_count_as_transient_and_are_kept_as_last_error() -> None:
    def handler(req, n):
        raise httpx.ReadTimeout("too slow", request=req)

    t, calls, _ = _transport(handler, max_attempts=2)

    with pytest.raises(RetriesExhaustedError) as exc:
        asyncio.run(t.send(ENDPOINT, {}))

    assert len(calls) == 2
    assert isinstance(exc.value.last_error, httpx.ReadTimeout)


def test_single_attempt_budget_never_sleeps() -> None:
    t, calls, sleep = _transport(lambda req, n: httpx.Response(500), max_attempts=1)

    with pytest.raises(RetriesExhaustedError):
        asyncio.run(t.send(ENDPOINT, {}))

    assert len(calls) == 1
    assert sleep.delays == []


def test_zero_attempts_is_rejected() -> None:
    with pytest.raises(ValueError):
        RetryingTransport(httpx.AsyncClient(), max_attempts=0)


def test_backoff_delay_formula() -> None:
    assert backoff_delay(0, 1.0, lambda lo, hi: 0.0) == 1.0
    assert backoff_delay(3, 0.25, lambda lo, hi: 0.1) == pytest.approx(2.1)

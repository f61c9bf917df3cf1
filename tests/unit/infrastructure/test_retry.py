"""
Unit tests for transient-error classification used by the retry policy.
"""

import httpx
import pytest

from app.infrastructure.services.retry import (
    create_retry_decorator,
    get_http_status_code,
    is_transient_error,
)

pytestmark = pytest.mark.unit


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/v1/x")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


class _WithStatus(Exception):
    def __init__(self, status_code):
        super().__init__("error")
        self.status_code = status_code


@pytest.mark.parametrize("code", [408, 429, 500, 502, 503, 504])
def test_transient_status_codes(code):
    assert is_transient_error(_status_error(code))


@pytest.mark.parametrize("code", [400, 401, 402, 403, 404, 409, 422])
def test_permanent_or_unknown_status_codes(code):
    assert not is_transient_error(_status_error(code))


def test_plain_status_code_attribute():
    assert get_http_status_code(_WithStatus(503)) == 503
    assert get_http_status_code(_WithStatus("503")) is None
    assert is_transient_error(_WithStatus(429))


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
        TimeoutError(),
        ConnectionResetError(),
    ],
)
def test_network_errors_are_transient(exc):
    assert is_transient_error(exc)


def test_other_errors_fail_fast():
    assert not is_transient_error(ValueError("bad input"))


def test_decorator_retries_transient_then_succeeds():
    calls = {"n": 0}

    @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0.01)
    def flaky():
        calls["n"] += 1
        if calls["n"] < 3:
            raise _status_error(503)
        return "ok"

    assert flaky() == "ok"
    assert calls["n"] == 3


def test_decorator_does_not_retry_permanent_errors():
    calls = {"n": 0}

    @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0.01)
    def declined():
        calls["n"] += 1
        raise _status_error(402)

    with pytest.raises(httpx.HTTPStatusError):
        declined()
    assert calls["n"] == 1


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"base_delay": -1}, {"max_delay": 0}],
)
def test_invalid_overrides(kwargs):
    with pytest.raises(ValueError):
        create_retry_decorator(**kwargs)

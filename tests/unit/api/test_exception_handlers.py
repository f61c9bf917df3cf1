"""
Mapeo excepción -> RFC 7807 sobre una app mínima (sin container).
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.exception_handlers import register_exception_handlers
from app.crosscutting.error_responses import (
    PROBLEM_JSON_MEDIA_TYPE,
    invalid_or_expired_code,
    not_found,
)
from app.crosscutting.exceptions import (
    DocumentStoreError,
    MalformedKeyError,
    NotificationError,
    PaymentGatewayError,
    StoreUnavailableError,
)

pytestmark = pytest.mark.unit


def _app_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (MalformedKeyError("abc", entity="product"), 400, "MALFORMED_KEY"),
        (
            StoreUnavailableError("both down", stores=("relational", "document")),
            503,
            "STORE_UNAVAILABLE",
        ),
        (DocumentStoreError("firestore down"), 503, "STORE_UNAVAILABLE"),
        (NotificationError("smtp down"), 503, "SERVICE_UNAVAILABLE"),
        (PaymentGatewayError("card declined"), 502, "PAYMENT_ERROR"),
        (invalid_or_expired_code(), 400, "INVALID_OR_EXPIRED_CODE"),
        (not_found("Product", "7"), 404, "NOT_FOUND"),
    ],
)
def test_errors_map_to_problem_json(exc, status, code):
    res = _app_raising(exc).get("/boom")

    assert res.status_code == status
    assert res.headers["content-type"].startswith(PROBLEM_JSON_MEDIA_TYPE)
    body = res.json()
    assert body["code"] == code
    assert body["status"] == status


def test_service_errors_carry_error_id():
    exc = MalformedKeyError("x1")
    body = _app_raising(exc).get("/boom").json()
    assert any(e.get("error_id") == exc.error_id for e in body["errors"])


def test_unhandled_errors_are_generic_500():
    res = _app_raising(RuntimeError("kaboom")).get("/boom")
    assert res.status_code == 500
    assert res.json()["code"] == "INTERNAL_ERROR"

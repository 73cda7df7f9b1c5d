"""Tests for the error taxonomy, error responses, and handlers."""

import asyncio
import json

from src.errors.config import (
    DEFAULT_ERROR_CONFIG,
    ERROR_SEVERITY_MAP,
    ERROR_STATUS_MAP,
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.errors.exceptions import (
    AuthRejected,
    DecryptionFailure,
    InternalError,
    NoCredentialsError,
    RateLimited,
    RepoDeckError,
    TransientNetworkError,
    UpstreamError,
    UpstreamTimeout,
    ValidationError,
)
from src.errors.handlers import (
    ErrorResponse,
    create_error_response,
    handle_app_error,
    handle_unhandled_error,
)
from src.errors.middleware import ErrorHandlingMiddleware
from src.logging_config.context import RequestContext


class TestErrorConfig:

    def test_every_code_has_status_and_severity(self):
        for code in ErrorCode:
            assert code in ERROR_STATUS_MAP
            assert code in ERROR_SEVERITY_MAP

    def test_status_mapping(self):
        assert ERROR_STATUS_MAP[ErrorCode.INVALID_TOKEN_FORMAT] == 400
        assert ERROR_STATUS_MAP[ErrorCode.BAD_CREDENTIALS] == 401
        assert ERROR_STATUS_MAP[ErrorCode.DECRYPTION_FAILED] == 422
        assert ERROR_STATUS_MAP[ErrorCode.RATE_LIMIT_EXCEEDED] == 429
        assert ERROR_STATUS_MAP[ErrorCode.UPSTREAM_TIMEOUT] == 504
        assert ERROR_STATUS_MAP[ErrorCode.FETCH_ERROR] == 502

    def test_default_config(self):
        assert DEFAULT_ERROR_CONFIG.include_request_id is True
        assert DEFAULT_ERROR_CONFIG.suppress_internal_details is True

    def test_severity_of_internal_errors(self):
        assert ERROR_SEVERITY_MAP[ErrorCode.INTERNAL_ERROR] == ErrorSeverity.CRITICAL


class TestExceptions:
    """Each taxonomy class carries its code, status, and retryability."""

    def test_all_share_a_base(self):
        for exc in (
            ValidationError(), NoCredentialsError(), DecryptionFailure(), AuthRejected(),
            RateLimited(), UpstreamTimeout(), TransientNetworkError(), UpstreamError(),
            InternalError(),
        ):
            assert isinstance(exc, RepoDeckError)
            assert exc.status_code == ERROR_STATUS_MAP[exc.error_code]

    def test_retryable_classes(self):
        assert UpstreamTimeout.retryable is True
        assert TransientNetworkError.retryable is True
        assert UpstreamError.retryable is True
        assert ValidationError.retryable is False
        assert AuthRejected.retryable is False

    def test_auth_rejected_differs_from_rate_limit(self):
        assert AuthRejected().error_code != RateLimited().error_code
        assert AuthRejected().status_code == 401
        assert RateLimited().status_code == 429

    def test_rate_limited_retry_after_header(self):
        exc = RateLimited(retry_after=3600)
        assert exc.retry_after == 3600
        assert exc.headers == {"Retry-After": "3600"}
        assert RateLimited().headers == {}

    def test_validation_field_details(self):
        exc = ValidationError("bad", field="token")
        assert exc.details == [{"field": "token", "issue": "bad"}]

    def test_upstream_status_detail(self):
        exc = UpstreamError(status=503)
        assert exc.upstream_status == 503
        assert exc.details == [{"upstream_status": 503}]

    def test_no_credentials_is_401(self):
        assert NoCredentialsError().status_code == 401


class TestErrorResponse:

    def test_envelope(self):
        resp = create_error_response(ErrorCode.FETCH_ERROR, "nope")
        body = resp.to_dict()
        assert body["error"]["code"] == "FETCH_ERROR"
        assert body["error"]["message"] == "nope"
        assert "timestamp" in body["error"]
        assert "details" not in body["error"]
        assert resp.status_code == 502

    def test_retry_after_in_body(self):
        resp = handle_app_error(RateLimited(retry_after=60))
        assert resp.to_dict()["error"]["retry_after"] == 60
        assert resp.status_code == 429

    def test_request_id_from_context(self):
        with RequestContext(request_id="req-9"):
            resp = handle_app_error(AuthRejected())
        assert resp.request_id == "req-9"

    def test_request_id_can_be_disabled(self):
        with RequestContext(request_id="req-9"):
            resp = handle_app_error(AuthRejected(), ErrorConfig(include_request_id=False))
        assert resp.request_id is None

    def test_unhandled_error_hides_details(self):
        resp = handle_unhandled_error(RuntimeError("db password is hunter2"))
        assert resp.code == "INTERNAL_ERROR"
        assert "hunter2" not in resp.message

    def test_unhandled_error_details_when_allowed(self):
        resp = handle_unhandled_error(
            RuntimeError("boom"), ErrorConfig(suppress_internal_details=False)
        )
        assert "boom" in resp.message

    def test_dataclass_defaults(self):
        resp = ErrorResponse(code="X", message="y")
        assert resp.status_code == 500
        assert resp.timestamp


class TestMiddleware:
    """ASGI error middleware turning exceptions into JSON responses."""

    def _run(self, app):
        sent = []

        async def receive():
            return {"type": "http.request", "body": b""}

        async def send(message):
            sent.append(message)

        scope = {"type": "http", "method": "GET", "path": "/x", "headers": []}
        asyncio.run(ErrorHandlingMiddleware(app)(scope, receive, send))
        return sent

    def test_taxonomy_error(self):
        async def app(scope, receive, send):
            raise RateLimited(retry_after=10)

        start, body = self._run(app)
        assert start["status"] == 429
        assert (b"Retry-After", b"10") in start["headers"]
        assert json.loads(body["body"])["error"]["code"] == "RATE_LIMIT_EXCEEDED"

    def test_unexpected_error(self):
        async def app(scope, receive, send):
            raise KeyError("secret")

        start, body = self._run(app)
        assert start["status"] == 500
        assert json.loads(body["body"])["error"]["message"] == "An internal error occurred"

    def test_passes_through_success(self):
        async def app(scope, receive, send):
            await send({"type": "http.response.start", "status": 204, "headers": []})
            await send({"type": "http.response.body", "body": b""})

        start, _ = self._run(app)
        assert start["status"] == 204

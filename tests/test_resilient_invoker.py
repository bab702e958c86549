"""Unit tests for error classification and the ResilientInvoker."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import httpx
import pytest
from unittest.mock import Mock
from groq import RateLimitError, InternalServerError, APITimeoutError, APIConnectionError, BadRequestError
from services.errors import ServiceError, ServiceClientError
from services.resilient_invoker import (
    ErrorClass,
    ResilientInvoker,
    RetryPolicy,
    classify_error,
    classify_status,
)
from services.run_logger import RunLogger


def service_error(code: str) -> ServiceClientError:
    return ServiceClientError(ServiceError(code=code, message=code.lower(), details={}))


@pytest.fixture
def run_logger():
    return RunLogger(run_id="test-run")


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def invoker(run_logger, sleep):
    return ResilientInvoker(run_logger=run_logger, sleep=sleep, jitter_source=lambda: 0.0)


class TestClassifyError:
    """Test suite for classify_error."""

    @pytest.mark.parametrize("code,expected", [
        ("QUOTA_ERROR", ErrorClass.QUOTA),
        ("RATE_LIMIT_ERROR", ErrorClass.RATE_LIMIT),
        ("TIMEOUT_ERROR", ErrorClass.TRANSIENT),
        ("NETWORK_ERROR", ErrorClass.TRANSIENT),
        ("SERVER_ERROR", ErrorClass.TRANSIENT),
        ("AUTHENTICATION_ERROR", ErrorClass.OTHER),
        ("API_ERROR", ErrorClass.OTHER),
        ("UNKNOWN_ERROR", ErrorClass.OTHER),
    ])
    def test_service_error_codes(self, code, expected):
        assert classify_error(service_error(code)) is expected

    def test_status_codes(self):
        assert classify_status(402) is ErrorClass.QUOTA
        assert classify_status(429) is ErrorClass.RATE_LIMIT
        assert classify_status(429, '{"error": {"code": "insufficient_quota"}}') is ErrorClass.QUOTA
        assert classify_status(500) is ErrorClass.TRANSIENT
        assert classify_status(503) is ErrorClass.TRANSIENT
        assert classify_status(400) is ErrorClass.OTHER
        assert classify_status(403, "monthly quota reached") is ErrorClass.QUOTA

    def test_billing_link_in_rate_limit_is_not_quota(self):
        body = "Rate limit reached. Need more tokens? Upgrade at https://console.groq.com/settings/billing"
        assert classify_status(429, body) is ErrorClass.RATE_LIMIT

    def test_groq_rate_limit(self):
        error = RateLimitError(message="Rate limit reached", response=Mock(status_code=429), body=None)
        assert classify_error(error) is ErrorClass.RATE_LIMIT

    def test_groq_quota(self):
        error = RateLimitError(
            message="You exceeded your current quota",
            response=Mock(status_code=429),
            body={"error": {"code": "insufficient_quota"}}
        )
        assert classify_error(error) is ErrorClass.QUOTA

    def test_groq_server_and_connection_errors(self):
        server = InternalServerError(message="Bad gateway", response=Mock(status_code=502), body=None)
        assert classify_error(server) is ErrorClass.TRANSIENT
        assert classify_error(APITimeoutError(request=Mock())) is ErrorClass.TRANSIENT
        assert classify_error(APIConnectionError(request=Mock())) is ErrorClass.TRANSIENT

    def test_groq_bad_request_is_other(self):
        error = BadRequestError(message="Invalid model", response=Mock(status_code=400), body=None)
        assert classify_error(error) is ErrorClass.OTHER

    def test_httpx_errors(self):
        assert classify_error(httpx.ReadTimeout("slow")) is ErrorClass.TRANSIENT
        assert classify_error(httpx.ConnectError("refused")) is ErrorClass.TRANSIENT

        request = httpx.Request("POST", "https://example.test")
        response = httpx.Response(429, request=request, text="slow down")
        error = httpx.HTTPStatusError("429", request=request, response=response)
        assert classify_error(error) is ErrorClass.RATE_LIMIT

    def test_unknown_exception_is_other(self):
        assert classify_error(KeyError("boom")) is ErrorClass.OTHER


class TestRetryPolicy:
    """Test suite for the backoff schedule."""

    def test_doubles_from_half_a_second(self):
        policy = RetryPolicy()
        assert [policy.delay_for(n) for n in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_capped_at_eight_seconds_before_jitter(self):
        policy = RetryPolicy()
        assert policy.delay_for(4) == 8.0
        assert policy.delay_for(10) == 8.0
        assert policy.delay_for(10, jitter=0.25) == 8.25


class TestResilientInvoker:
    """Test suite for ResilientInvoker."""

    def test_success_first_attempt(self, invoker, sleep, run_logger):
        fn = Mock(return_value="ok")

        assert invoker.invoke("answer", fn, 1, flag=True) == "ok"

        fn.assert_called_once_with(1, flag=True)
        sleep.assert_not_called()
        assert run_logger.events_named("retry") == []

    def test_quota_not_retried(self, invoker, sleep, run_logger):
        error = service_error("QUOTA_ERROR")
        fn = Mock(side_effect=error)

        with pytest.raises(ServiceClientError) as exc_info:
            invoker.invoke("answer", fn)

        assert exc_info.value is error
        assert fn.call_count == 1
        sleep.assert_not_called()
        assert run_logger.events_named("retry") == []
        assert invoker.retry_count == 0

    def test_rate_limit_then_success(self, invoker, sleep, run_logger):
        fn = Mock(side_effect=[service_error("RATE_LIMIT_ERROR"), "answer text"])

        result = invoker.invoke("answer", fn)

        assert result == "answer text"
        assert fn.call_count == 2
        retries = run_logger.events_named("retry")
        assert len(retries) == 1
        assert retries[0]["operation"] == "answer"
        assert retries[0]["error_class"] == "rate_limit"
        assert retries[0]["attempt"] == 1
        sleep.assert_called_once_with(0.5)

    def test_transient_retried_like_rate_limit(self, invoker, sleep):
        fn = Mock(side_effect=[httpx.ReadTimeout("slow"), service_error("SERVER_ERROR"), [1.0]])

        assert invoker.invoke("embed", fn) == [1.0]
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_exhausted_retries_propagate_last_error(self, invoker, sleep, run_logger):
        errors = [service_error("RATE_LIMIT_ERROR") for _ in range(5)]
        fn = Mock(side_effect=errors)

        with pytest.raises(ServiceClientError) as exc_info:
            invoker.invoke("answer", fn)

        assert exc_info.value is errors[-1]
        assert fn.call_count == 5
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0, 2.0, 4.0]
        assert len(run_logger.events_named("retry")) == 4
        assert len(run_logger.events_named("retries_exhausted")) == 1

    def test_other_errors_not_retried(self, invoker, sleep):
        fn = Mock(side_effect=ValueError("bad input"))

        with pytest.raises(ValueError, match="bad input"):
            invoker.invoke("answer", fn)

        assert fn.call_count == 1
        sleep.assert_not_called()

    def test_jitter_added_to_delay(self, run_logger, sleep):
        invoker = ResilientInvoker(run_logger=run_logger, sleep=sleep, jitter_source=lambda: 0.5)
        fn = Mock(side_effect=[service_error("RATE_LIMIT_ERROR"), "ok"])

        invoker.invoke("answer", fn)

        # 0.5s base + 0.5 * 0.25s jitter
        sleep.assert_called_once_with(0.625)

    def test_custom_policy(self, run_logger, sleep):
        policy = RetryPolicy(initial_delay=1.0, max_delay=1.5, max_retries=2)
        invoker = ResilientInvoker(policy, run_logger, sleep=sleep, jitter_source=lambda: 0.0)
        fn = Mock(side_effect=service_error("TIMEOUT_ERROR"))

        with pytest.raises(ServiceClientError):
            invoker.invoke("embed", fn)

        assert fn.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 1.5]

"""Error classification and retry with exponential backoff for external calls."""
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import groq
import httpx

from services.errors import (
    ServiceClientError,
    QUOTA_ERROR,
    RATE_LIMIT_ERROR,
    TIMEOUT_ERROR,
    NETWORK_ERROR,
    SERVER_ERROR,
    mentions_quota,
)
from services.run_logger import RunLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorClass(str, Enum):
    """Failure classes that drive the retry decision."""
    QUOTA = "quota"
    RATE_LIMIT = "rate_limit"
    TRANSIENT = "transient"
    OTHER = "other"


RETRYABLE = {ErrorClass.RATE_LIMIT, ErrorClass.TRANSIENT}

_CODE_CLASSES = {
    QUOTA_ERROR: ErrorClass.QUOTA,
    RATE_LIMIT_ERROR: ErrorClass.RATE_LIMIT,
    TIMEOUT_ERROR: ErrorClass.TRANSIENT,
    NETWORK_ERROR: ErrorClass.TRANSIENT,
    SERVER_ERROR: ErrorClass.TRANSIENT,
}


def classify_status(status_code: int, body: Any = None) -> ErrorClass:
    """Classify an HTTP status code (and its body, for quota detection)."""
    if status_code == 402:
        return ErrorClass.QUOTA
    if status_code == 429:
        return ErrorClass.QUOTA if mentions_quota(body) else ErrorClass.RATE_LIMIT
    if status_code >= 500:
        return ErrorClass.TRANSIENT
    if 400 <= status_code < 500 and mentions_quota(body):
        return ErrorClass.QUOTA
    return ErrorClass.OTHER


def classify_error(exc: BaseException) -> ErrorClass:
    """
    Map an exception raised by an external call to its ErrorClass.

    Understands the structured ServiceClientError raised by our clients as
    well as raw groq and httpx exceptions.
    """
    if isinstance(exc, ServiceClientError):
        return _CODE_CLASSES.get(exc.code, ErrorClass.OTHER)

    if isinstance(exc, groq.APIStatusError):
        return classify_status(exc.status_code, exc.body or str(exc))
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(exc, groq.APIConnectionError):
        return ErrorClass.TRANSIENT

    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code, exc.response.text)
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return ErrorClass.TRANSIENT

    if isinstance(exc, TimeoutError):
        return ErrorClass.TRANSIENT

    return ErrorClass.OTHER


@dataclass
class RetryPolicy:
    """Exponential backoff schedule, in seconds."""
    initial_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 8.0
    max_jitter: float = 0.25
    max_retries: int = 4

    def delay_for(self, retry_number: int, jitter: float = 0.0) -> float:
        """Delay before retry number `retry_number` (0-based), jitter added after the cap."""
        base = self.initial_delay * (self.multiplier ** retry_number)
        return min(base, self.max_delay) + jitter


class ResilientInvoker:
    """Wraps external-service calls with classification and retry."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        run_logger: Optional[RunLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
        jitter_source: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the invoker.

        Args:
            policy: Backoff schedule (defaults: 0.5s doubling, 8s cap, 4 retries)
            run_logger: Receives one "retry" event per retry
            sleep: Blocking sleep function
            jitter_source: Returns a float in [0, 1); scaled by policy.max_jitter
        """
        self.policy = policy or RetryPolicy()
        self.run_logger = run_logger or RunLogger()
        self.sleep = sleep
        self.jitter_source = jitter_source or random.random
        self.retry_count = 0

    def invoke(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Call fn(*args, **kwargs), retrying rate-limit and transient failures.

        Args:
            operation: Name used in log events, e.g. "embed"
            fn: The external call

        Returns:
            Whatever fn returns

        Raises:
            The last exception raised by fn, unchanged, when it is not
            retryable or the retry budget is exhausted
        """
        attempt = 0
        while True:
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                error_class = classify_error(e)

                if error_class not in RETRYABLE:
                    self.run_logger.warning(
                        "call_failed",
                        operation=operation,
                        error_class=error_class.value,
                        attempts=attempt + 1,
                        error=str(e)
                    )
                    raise

                if attempt >= self.policy.max_retries:
                    self.run_logger.error(
                        "retries_exhausted",
                        operation=operation,
                        error_class=error_class.value,
                        attempts=attempt + 1,
                        error=str(e)
                    )
                    raise

                jitter = self.jitter_source() * self.policy.max_jitter
                delay = self.policy.delay_for(attempt, jitter)
                attempt += 1
                self.retry_count += 1
                self.run_logger.warning(
                    "retry",
                    operation=operation,
                    attempt=attempt,
                    error_class=error_class.value,
                    delay_s=round(delay, 3),
                    error=str(e)
                )
                self.sleep(delay)

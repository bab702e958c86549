"""Structured errors raised by the external service clients."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

QUOTA_ERROR = "QUOTA_ERROR"
RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
TIMEOUT_ERROR = "TIMEOUT_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
SERVER_ERROR = "SERVER_ERROR"
AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
API_ERROR = "API_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

# Groq rate-limit messages link to the billing page, so "billing" alone is not a marker
QUOTA_MARKERS = ("insufficient_quota", "quota", "payment required", "included credits")


@dataclass
class ServiceError:
    """Structured error response from an external service call."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class ServiceClientError(Exception):
    """Exception carrying a structured ServiceError."""

    def __init__(self, error: ServiceError):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> str:
        return self.error.code


class UsageError(Exception):
    """Raised when the tool is invoked without a question."""


def mentions_quota(text: Optional[Any]) -> bool:
    """Return True when an error payload looks like a plan or billing limit."""
    if not text:
        return False
    lowered = str(text).lower()
    return any(marker in lowered for marker in QUOTA_MARKERS)

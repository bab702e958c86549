"""LLM Client for Groq API integration."""
import time
from dataclasses import dataclass
from typing import Optional
from groq import Groq
from groq import (
    RateLimitError,
    AuthenticationError,
    InternalServerError,
    APIStatusError,
    APIError,
    APITimeoutError,
    APIConnectionError,
)
import logging

from config import GROQ_API_KEY
from services.errors import (
    ServiceError,
    ServiceClientError,
    QUOTA_ERROR,
    RATE_LIMIT_ERROR,
    TIMEOUT_ERROR,
    NETWORK_ERROR,
    SERVER_ERROR,
    AUTHENTICATION_ERROR,
    API_ERROR,
    UNKNOWN_ERROR,
    mentions_quota,
)

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


class LLMClient:
    """Client for interfacing with Groq API for text generation."""

    def __init__(self, api_key: Optional[str] = None, max_tokens: int = 800):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            max_tokens: Maximum tokens to generate per call
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.max_tokens = max_tokens
        # Retries are handled by ResilientInvoker
        self.client = Groq(api_key=self.api_key, max_retries=0)
        logger.info("LLMClient initialized successfully")

    def generate(
        self,
        model: str,
        instructions: str,
        user_input: str,
        temperature: float = 0.2
    ) -> LLMResponse:
        """
        Generate a completion for one instruction and one user input.

        Args:
            model: Model name
            instructions: System instructions for the mode being used
            user_input: The user message
            temperature: Sampling temperature

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            ServiceClientError: Structured error with code, message, and details
        """
        start_time = time.time()

        try:
            logger.debug(f"Generating response with model: {model}")

            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": user_input}
                ],
                max_tokens=self.max_tokens,
                temperature=temperature
            )

            latency_ms = int((time.time() - start_time) * 1000)
            text = response.choices[0].message.content or ""

            usage = response.usage
            tokens_input = usage.prompt_tokens if usage else 0
            tokens_output = usage.completion_tokens if usage else 0

            logger.info(
                f"Generated response: model={model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms"
            )

            return LLMResponse(
                text=text,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=model
            )

        except RateLimitError as e:
            if mentions_quota(e.body) or mentions_quota(str(e)):
                raise self._error(QUOTA_ERROR, "Quota exhausted for the generation service.",
                                  model, start_time, e, status_code=429)
            raise self._error(RATE_LIMIT_ERROR, "Rate limit exceeded. Please try again in a few moments.",
                              model, start_time, e, status_code=429)

        except AuthenticationError as e:
            raise self._error(AUTHENTICATION_ERROR, "Authentication failed. Please check your API key.",
                              model, start_time, e, status_code=401)

        except InternalServerError as e:
            raise self._error(SERVER_ERROR, f"Groq server error: {str(e)}",
                              model, start_time, e, status_code=e.status_code)

        except APIStatusError as e:
            if e.status_code == 402 or mentions_quota(e.body):
                raise self._error(QUOTA_ERROR, "Quota exhausted for the generation service.",
                                  model, start_time, e, status_code=e.status_code)
            raise self._error(API_ERROR, f"Groq API error: {str(e)}",
                              model, start_time, e, status_code=e.status_code)

        except APITimeoutError as e:
            raise self._error(TIMEOUT_ERROR, "Request timed out. Please try again.",
                              model, start_time, e)

        except APIConnectionError as e:
            raise self._error(NETWORK_ERROR, f"Could not reach Groq: {str(e)}",
                              model, start_time, e)

        except APIError as e:
            raise self._error(API_ERROR, f"Groq API error: {str(e)}",
                              model, start_time, e)

        except Exception as e:
            raise self._error(UNKNOWN_ERROR, f"Unexpected error during generation: {str(e)}",
                              model, start_time, e, error_type=type(e).__name__)

    @staticmethod
    def _error(
        code: str,
        message: str,
        model: str,
        start_time: float,
        original: Exception,
        **extra
    ) -> ServiceClientError:
        latency_ms = int((time.time() - start_time) * 1000)
        error = ServiceError(
            code=code,
            message=message,
            details={
                "model": model,
                "latency_ms": latency_ms,
                "original_error": str(original),
                **extra
            }
        )
        logger.error(
            f"Generation failed: code={code}, model={model}, latency={latency_ms}ms, error={original}",
            extra={"fields": {"error_code": code, "error_details": error.details}}
        )
        return ServiceClientError(error)

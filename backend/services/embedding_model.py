"""Embedding model integration with Hugging Face Inference API."""
import time
import logging
from typing import List, Optional
import httpx
from config import HUGGINGFACE_API_KEY, EMBEDDING_MODEL, HF_INFERENCE_URL
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
    mentions_quota,
)

logger = logging.getLogger(__name__)


class EmbeddingModel:
    """Wrapper for Hugging Face Inference API feature extraction."""

    def __init__(
        self,
        api_key: str = HUGGINGFACE_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        base_url: str = HF_INFERENCE_URL,
        timeout: float = 120.0
    ):
        """
        Initialize the embedding model client.

        Args:
            api_key: Hugging Face API key
            model_name: Default model identifier
            base_url: Inference endpoint prefix; the model id is appended
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ValueError("HUGGINGFACE_API_KEY environment variable is required")

        self.api_key = api_key
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        logger.info(f"Initialized EmbeddingModel with model: {model_name}")

    def api_url(self, model: str) -> str:
        return f"{self.base_url}/{model}/pipeline/feature-extraction"

    def embed_batch(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        """
        Generate raw embeddings for multiple texts in a single API call.

        One attempt only; callers wrap this in a ResilientInvoker.

        Args:
            texts: Texts to embed, in order
            model: Model identifier (defaults to the client's model)

        Returns:
            One vector per input text, in input order

        Raises:
            ValueError: If texts list is empty
            ServiceClientError: If the request fails
        """
        if not texts:
            raise ValueError("Texts list cannot be empty")

        model = model or self.model_name
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "inputs": texts,
            "options": {
                "wait_for_model": True  # Wait for model to load if sleeping
            }
        }

        start_time = time.time()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.api_url(model), headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise self._error(TIMEOUT_ERROR, f"Request timeout after {self.timeout}s", model, e)
        except httpx.RequestError as e:
            raise self._error(NETWORK_ERROR, f"Network error: {str(e)}", model, e)

        elapsed = time.time() - start_time
        status = response.status_code

        if status == 200:
            embeddings = response.json()
            if not isinstance(embeddings, list) or len(embeddings) != len(texts):
                raise self._error(
                    API_ERROR,
                    f"Expected {len(texts)} embeddings, got an unexpected payload",
                    model
                )
            logger.debug(f"Generated embeddings for {len(texts)} texts in {elapsed:.2f}s")
            return embeddings

        body = response.text
        if status == 402 or (400 <= status < 500 and mentions_quota(body)):
            raise self._error(QUOTA_ERROR, "Embedding quota exhausted", model, status_code=status)
        if status == 429:
            raise self._error(RATE_LIMIT_ERROR, "Rate limit exceeded. Please try again later.",
                              model, status_code=status)
        if status == 401:
            raise self._error(AUTHENTICATION_ERROR, "Invalid API key", model, status_code=status)
        if status >= 500:
            # 503 while the model is loading
            raise self._error(SERVER_ERROR, f"Embedding service unavailable ({status})",
                              model, status_code=status)
        raise self._error(API_ERROR, f"API request failed with status {status}: {body}",
                          model, status_code=status)

    @staticmethod
    def _error(
        code: str,
        message: str,
        model: str,
        original: Optional[Exception] = None,
        **extra
    ) -> ServiceClientError:
        details = {"model": model, **extra}
        if original is not None:
            details["original_error"] = str(original)
        logger.error(f"Embedding request failed: code={code}, {message}")
        return ServiceClientError(ServiceError(code=code, message=message, details=details))

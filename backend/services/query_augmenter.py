"""
Query augmentation: alternative search queries and HyDE passages.

Both strategies call the generation service through the ResilientInvoker and
cache their result under fingerprint(mode, model, question). A quota failure
degrades the strategy to an empty result instead of failing the question;
every other failure propagates.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from models.answer import AugmentationResult
from services.content_cache import ContentCache
from services.llm_client import LLMClient
from services.prompts import MULTI_QUERY_INSTRUCTIONS, HYDE_INSTRUCTIONS
from services.resilient_invoker import ResilientInvoker, ErrorClass, classify_error
from services.run_logger import RunLogger

logger = logging.getLogger(__name__)

REWRITE_MODE = "multi_query"
HYDE_MODE = "hyde"

_DECODER = json.JSONDecoder()


def _first_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Decode exactly one object starting at the first '{' that opens valid JSON."""
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)
    return None


def parse_rewrites(raw: str, limit: int = 3) -> Optional[List[str]]:
    """
    Extract the "queries" list from a rewrite response.

    The first JSON object in the output is used; prose or markdown fences
    around it are ignored.

    Returns:
        Up to `limit` non-empty query strings, or None if the output is not
        a JSON object with a "queries" list
    """
    parsed = _first_json_object(raw or "")
    if parsed is None or not isinstance(parsed.get("queries"), list):
        return None

    queries = [q.strip() for q in parsed["queries"] if isinstance(q, str) and q.strip()]
    return queries[:limit]


class QueryAugmenter:
    """Produces alternative queries for one question."""

    def __init__(
        self,
        llm_client: LLMClient,
        invoker: ResilientInvoker,
        cache: ContentCache,
        model: str,
        run_logger: Optional[RunLogger] = None,
        max_rewrites: int = 3,
        rewrite_temperature: float = 0.2,
        hyde_temperature: float = 0.3
    ):
        self.llm_client = llm_client
        self.invoker = invoker
        self.cache = cache
        self.model = model
        self.run_logger = run_logger or invoker.run_logger
        self.max_rewrites = max_rewrites
        self.rewrite_temperature = rewrite_temperature
        self.hyde_temperature = hyde_temperature
        self.degraded_modes = set()

    def _generate(self, mode: str, instructions: str, question: str, temperature: float) -> str:
        response = self.invoker.invoke(
            mode,
            self.llm_client.generate,
            model=self.model,
            instructions=instructions,
            user_input=question,
            temperature=temperature
        )
        return (response.text or "").strip()

    def _is_quota(self, mode: str, error: Exception) -> bool:
        if classify_error(error) is not ErrorClass.QUOTA:
            return False
        self.degraded_modes.add(mode)
        self.run_logger.warning("augmentation_skipped", mode=mode, reason="quota", error=str(error))
        return True

    def rewrite(self, question: str) -> List[str]:
        """
        Ask for alternative phrasings of the question.

        Returns:
            Up to max_rewrites queries; [] when the output cannot be parsed
            or the quota is exhausted
        """
        key = self.cache.key(REWRITE_MODE, self.model, question)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)[:self.max_rewrites]

        try:
            raw = self._generate(REWRITE_MODE, MULTI_QUERY_INSTRUCTIONS, question, self.rewrite_temperature)
        except Exception as e:
            if self._is_quota(REWRITE_MODE, e):
                return []
            raise

        queries = parse_rewrites(raw, limit=self.max_rewrites)
        if queries is None:
            self.run_logger.warning("rewrite_unparseable", preview=raw[:120])
            return []

        self.cache.put(key, queries)
        return queries

    def hypothetical_answer(self, question: str) -> str:
        """Ask for a short passage that would answer the question; "" on quota exhaustion."""
        key = self.cache.key(HYDE_MODE, self.model, question)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            text = self._generate(HYDE_MODE, HYDE_INSTRUCTIONS, question, self.hyde_temperature)
        except Exception as e:
            if self._is_quota(HYDE_MODE, e):
                return ""
            raise

        if text:
            self.cache.put(key, text)
        return text

    def augment(self, question: str, use_rewrites: bool = True, use_hyde: bool = True) -> AugmentationResult:
        """Run the enabled strategies for one question."""
        result = AugmentationResult()

        if use_rewrites and self.max_rewrites > 0:
            result.rewrites = self.rewrite(question)
        if use_hyde:
            result.hypothetical = self.hypothetical_answer(question)

        result.degraded = bool(self.degraded_modes)
        self.run_logger.info(
            "augmented",
            rewrites=len(result.rewrites),
            hyde=bool(result.hypothetical),
            degraded=result.degraded
        )
        return result

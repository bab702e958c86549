"""Content-addressed caching of external service results."""
import hashlib
import logging
import re
from typing import Any, Dict, List, Optional
import numpy as np

from services.embedding_model import EmbeddingModel
from services.kv_store import KeyValueStore
from services.resilient_invoker import ResilientInvoker
from services.vector_store import to_unit_embedding

logger = logging.getLogger(__name__)

EMBEDDING_NAMESPACE = "embedding"
AUGMENTATION_NAMESPACE = "augmentation"
ANSWER_NAMESPACE = "answer"

_SEPARATOR = "\x1f"
_WHITESPACE = re.compile(r"\s+")


def fingerprint(namespace: str, *parts: str) -> str:
    """SHA-256 over the namespace and every input part, unambiguously joined."""
    digest = hashlib.sha256()
    for part in (namespace, *parts):
        encoded = str(part).encode("utf-8")
        digest.update(str(len(encoded)).encode("ascii"))
        digest.update(_SEPARATOR.encode("ascii"))
        digest.update(encoded)
    return digest.hexdigest()


def normalize_text(text: str) -> str:
    """Collapse whitespace runs so equivalent inputs share one cache entry."""
    return _WHITESPACE.sub(" ", text or "").strip()


class ContentCache:
    """One namespace of cached results on top of a KeyValueStore."""

    def __init__(self, store: KeyValueStore, namespace: str):
        self.store = store
        self.namespace = namespace
        self.hits = 0
        self.misses = 0

    def key(self, *parts: str) -> str:
        return fingerprint(self.namespace, *parts)

    def get(self, key: str) -> Optional[Any]:
        if key in self.store:
            self.hits += 1
            return self.store.get(key)
        self.misses += 1
        return None

    def put(self, key: str, value: Any) -> None:
        self.store.set(key, value)

    def load(self) -> None:
        self.store.load()

    def flush(self) -> None:
        self.store.flush()

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        return {
            "namespace": self.namespace,
            "size": len(self.store),
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": self.hits / total if total else 0.0,
        }


class CachedEmbedder:
    """Unit embeddings through the embedding cache, one service call per batch of misses."""

    def __init__(
        self,
        embedding_model: EmbeddingModel,
        cache: ContentCache,
        invoker: ResilientInvoker,
        model: Optional[str] = None
    ):
        self.embedding_model = embedding_model
        self.cache = cache
        self.invoker = invoker
        self.model = model or embedding_model.model_name

    def embed_texts(self, texts: List[str]) -> List[np.ndarray]:
        """
        Embed texts, calling the service only for texts not yet cached.

        Args:
            texts: Texts in request order

        Returns:
            Unit vectors in request order

        Raises:
            ServiceClientError: If the embedding call fails for good
        """
        if not texts:
            return []

        normalized = [normalize_text(text) for text in texts]
        keys = [self.cache.key(self.model, text) for text in normalized]

        vectors: Dict[str, List[float]] = {}
        misses: Dict[str, str] = {}
        for key, text in zip(keys, normalized):
            if key in vectors or key in misses:
                continue
            cached = self.cache.get(key)
            if cached is not None:
                vectors[key] = cached
            else:
                misses[key] = text

        if misses:
            miss_keys = list(misses)
            raw = self.invoker.invoke(
                "embed",
                self.embedding_model.embed_batch,
                [misses[key] for key in miss_keys],
                model=self.model
            )
            for key, vector in zip(miss_keys, raw):
                unit = to_unit_embedding(vector).tolist()
                self.cache.put(key, unit)
                vectors[key] = unit

        logger.debug(
            f"Embedded {len(texts)} texts: {len(texts) - len(misses)} from cache, "
            f"{len(misses)} requested"
        )
        return [np.asarray(vectors[key], dtype=np.float64) for key in keys]

    def embed_text(self, text: str) -> np.ndarray:
        return self.embed_texts([text])[0]

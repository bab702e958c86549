"""Question-to-answer pipeline over the local index."""
import logging
import os
from typing import Callable, Optional

from config import PipelineConfig
from models.answer import AnswerResult
from services.content_cache import (
    ContentCache,
    CachedEmbedder,
    EMBEDDING_NAMESPACE,
    AUGMENTATION_NAMESPACE,
    ANSWER_NAMESPACE,
)
from services.context_builder import ContextBuilder
from services.embedding_model import EmbeddingModel
from services.errors import UsageError
from services.kv_store import JsonFileStore, KeyValueStore
from services.llm_client import LLMClient
from services.prompts import ANSWER_INSTRUCTIONS, build_answer_input
from services.query_augmenter import QueryAugmenter
from services.resilient_invoker import ResilientInvoker, RetryPolicy
from services.retrieval_engine import RetrievalEngine
from services.run_logger import RunLogger
from services.vector_store import LocalVectorStore

logger = logging.getLogger(__name__)

CACHE_FILES = {
    EMBEDDING_NAMESPACE: "embeddings.json",
    AUGMENTATION_NAMESPACE: "augmentations.json",
    ANSWER_NAMESPACE: "answers.json",
}


def json_cache_stores(cache_dir: str) -> dict:
    """One JsonFileStore per cache namespace under cache_dir."""
    return {
        namespace: JsonFileStore(os.path.join(cache_dir, filename))
        for namespace, filename in CACHE_FILES.items()
    }


class RAGPipeline:
    """
    Answers questions from the local index.

    Long-lived collaborators (clients, store, caches) are held by the
    pipeline; the invoker, augmenter and retrieval engine are rebuilt for
    every question around that question's RunLogger.
    """

    def __init__(
        self,
        vector_store: LocalVectorStore,
        embedding_model: EmbeddingModel,
        llm_client: LLMClient,
        config: Optional[PipelineConfig] = None,
        stores: Optional[dict] = None,
        context_builder: Optional[ContextBuilder] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
        run_logger_factory: Callable[[], RunLogger] = RunLogger
    ):
        """
        Initialize the pipeline and load the caches.

        Args:
            vector_store: Loaded index
            embedding_model: Embedding service client
            llm_client: Generation service client
            config: Pipeline parameters
            stores: KeyValueStore per cache namespace (JSON files under
                config.cache_dir when omitted)
            context_builder: Context serializer
            retry_policy: Backoff schedule for every external call
            sleep: Sleep function handed to the invoker
            run_logger_factory: Creates the logger for each question
        """
        self.config = config or PipelineConfig()
        self.config.validate()

        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.llm_client = llm_client
        self.context_builder = context_builder or ContextBuilder()
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep
        self.run_logger_factory = run_logger_factory

        stores = stores or json_cache_stores(self.config.cache_dir)
        self.caches = {
            namespace: ContentCache(self._store(stores, namespace), namespace)
            for namespace in CACHE_FILES
        }
        for cache in self.caches.values():
            cache.load()

        logger.info(
            f"Initialized RAGPipeline with {len(vector_store)} chunks, "
            f"generation model {self.config.generation_model}"
        )

    @staticmethod
    def _store(stores: dict, namespace: str) -> KeyValueStore:
        if namespace not in stores:
            raise ValueError(f"Missing cache store for namespace '{namespace}'")
        return stores[namespace]

    @classmethod
    def from_config(cls, config: PipelineConfig, **kwargs) -> "RAGPipeline":
        """Build the pipeline with real service clients and the index file named in config."""
        vector_store = LocalVectorStore.load(config.index_path)
        embedding_model = EmbeddingModel(model_name=config.embedding_model)
        llm_client = LLMClient()
        return cls(vector_store, embedding_model, llm_client, config=config, **kwargs)

    def _invoker(self, run_logger: RunLogger) -> ResilientInvoker:
        if self.sleep is None:
            return ResilientInvoker(self.retry_policy, run_logger)
        return ResilientInvoker(self.retry_policy, run_logger, sleep=self.sleep)

    def ask(self, question: str, run_logger: Optional[RunLogger] = None) -> AnswerResult:
        """
        Answer one question.

        Args:
            question: Natural-language question
            run_logger: Logger for this run (created by the factory when omitted)

        Returns:
            AnswerResult with the answer and the retrieval trail

        Raises:
            UsageError: If the question is empty
            ServiceClientError: If embedding or answering fails for good,
                or augmentation fails for a reason other than quota
        """
        question = (question or "").strip()
        if not question:
            raise UsageError("A question is required")

        config = self.config
        run_logger = run_logger or self.run_logger_factory()
        invoker = self._invoker(run_logger)
        run_logger.info("question_received", length=len(question))

        # 1) Augment
        augmenter = QueryAugmenter(
            self.llm_client,
            invoker,
            self.caches[AUGMENTATION_NAMESPACE],
            model=config.generation_model,
            run_logger=run_logger,
            max_rewrites=config.max_rewrites,
            rewrite_temperature=config.rewrite_temperature,
            hyde_temperature=config.hyde_temperature
        )
        augmentation = augmenter.augment(
            question,
            use_rewrites=config.use_rewrites,
            use_hyde=config.use_hyde
        )
        variant_texts = augmentation.variant_texts(question)

        # 2) Embed variants, retrieve and pick diverse chunks
        embedder = CachedEmbedder(
            self.embedding_model,
            self.caches[EMBEDDING_NAMESPACE],
            invoker,
            model=config.embedding_model
        )
        engine = RetrievalEngine(self.vector_store, embedder, config, run_logger)
        retrieval = engine.retrieve(variant_texts)

        # 3) Build context
        context = self.context_builder.build(retrieval.selected)

        # 4) Answer
        answer_cache = self.caches[ANSWER_NAMESPACE]
        answer_key = answer_cache.key(config.generation_model, question, context.text)
        answer = answer_cache.get(answer_key)
        answer_cached = answer is not None

        if not answer_cached:
            response = invoker.invoke(
                "answer",
                self.llm_client.generate,
                model=config.generation_model,
                instructions=ANSWER_INSTRUCTIONS,
                user_input=build_answer_input(question, context.text),
                temperature=config.answer_temperature
            )
            answer = response.text
            answer_cache.put(answer_key, answer)

        run_logger.info(
            "answered",
            cached=answer_cached,
            context_tokens=context.token_count,
            sources=len(context.sources),
            retries=invoker.retry_count
        )

        return AnswerResult(
            question=question,
            answer=answer,
            run_id=run_logger.run_id,
            rewrites=augmentation.rewrites,
            hypothetical=augmentation.hypothetical,
            variant_texts=variant_texts,
            selected=retrieval.selected,
            context=context.text,
            context_tokens=context.token_count,
            degraded=augmentation.degraded,
            answer_cached=answer_cached
        )

    def close(self) -> None:
        """Persist every cache wholesale."""
        for cache in self.caches.values():
            cache.flush()
            logger.debug(f"Cache stats: {cache.get_stats()}")

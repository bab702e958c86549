"""Services for the local RAG tool."""
from .errors import ServiceError, ServiceClientError, UsageError
from .run_logger import RunLogger
from .resilient_invoker import ResilientInvoker, RetryPolicy, ErrorClass, classify_error
from .embedding_model import EmbeddingModel
from .llm_client import LLMClient, LLMResponse
from .vector_store import LocalVectorStore, to_unit_embedding
from .kv_store import KeyValueStore, JsonFileStore, MemoryStore
from .content_cache import ContentCache, CachedEmbedder, fingerprint
from .query_augmenter import QueryAugmenter
from .diversity_selector import pick_diverse
from .context_builder import ContextBuilder
from .retrieval_engine import RetrievalEngine
from .document_loader import DocumentLoader
from .chunking_engine import ChunkingEngine
from .rag_pipeline import RAGPipeline

__all__ = ['ServiceError', 'ServiceClientError', 'UsageError', 'RunLogger', 'ResilientInvoker', 'RetryPolicy', 'ErrorClass', 'classify_error', 'EmbeddingModel', 'LLMClient', 'LLMResponse', 'LocalVectorStore', 'to_unit_embedding', 'KeyValueStore', 'JsonFileStore', 'MemoryStore', 'ContentCache', 'CachedEmbedder', 'fingerprint', 'QueryAugmenter', 'pick_diverse', 'ContextBuilder', 'RetrievalEngine', 'DocumentLoader', 'ChunkingEngine', 'RAGPipeline']

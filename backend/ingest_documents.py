"""
Index build script for the local RAG tool.

This script:
1. Loads all .txt and .md files under the data directory
2. Chunks them into overlapping character windows
3. Embeds the chunks in batches (through the embedding cache)
4. Writes the index file

Usage:
    python ingest_documents.py [--data-dir data] [--index index/store.json]
"""
import argparse
import os
import sys
import logging
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from config import (
    DATA_DIR,
    INDEX_PATH,
    CACHE_DIR,
    EMBEDDING_MODEL,
    CHUNK_MAX_CHARS,
    CHUNK_OVERLAP_CHARS,
    EMBED_BATCH_SIZE,
    LOG_LEVEL,
)
from logger import setup_logging
from models.chunk import Chunk, ChunkItem
from services.chunking_engine import ChunkingEngine
from services.content_cache import ContentCache, CachedEmbedder, EMBEDDING_NAMESPACE
from services.document_loader import DocumentLoader
from services.embedding_model import EmbeddingModel
from services.errors import ServiceClientError
from services.kv_store import JsonFileStore
from services.rag_pipeline import CACHE_FILES
from services.resilient_invoker import ResilientInvoker
from services.run_logger import RunLogger
from services.vector_store import LocalVectorStore

logger = logging.getLogger(__name__)


def build_index(
    chunks: List[Chunk],
    embedder: CachedEmbedder,
    batch_size: int = EMBED_BATCH_SIZE
) -> LocalVectorStore:
    """
    Embed chunks batch by batch into a new store.

    Args:
        chunks: Chunks to embed, in index order
        embedder: Cached embedder
        batch_size: Texts per embedding request

    Returns:
        The populated store
    """
    store = LocalVectorStore()
    total = len(chunks)

    for i in range(0, total, batch_size):
        batch = chunks[i:i + batch_size]
        vectors = embedder.embed_texts([chunk.content for chunk in batch])
        for chunk, vector in zip(batch, vectors):
            store.add(ChunkItem.from_chunk(chunk, vector))
        logger.info(f"Embedded {min(i + batch_size, total)}/{total}")

    return store


def main(argv: Optional[List[str]] = None) -> int:
    """Main ingestion process."""
    parser = argparse.ArgumentParser(description="Build the local vector index")
    parser.add_argument("--data-dir", default=DATA_DIR, help="Directory with .txt/.md documents")
    parser.add_argument("--index", default=INDEX_PATH, help="Index file to write")
    parser.add_argument("--cache-dir", default=CACHE_DIR, help="Directory for cache files")
    parser.add_argument("--model", default=EMBEDDING_MODEL, help="Embedding model id")
    parser.add_argument("--max-chars", type=int, default=CHUNK_MAX_CHARS)
    parser.add_argument("--overlap-chars", type=int, default=CHUNK_OVERLAP_CHARS)
    parser.add_argument("--batch-size", type=int, default=EMBED_BATCH_SIZE)
    parser.add_argument("--log-level", default=LOG_LEVEL)
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    cache = ContentCache(
        JsonFileStore(os.path.join(args.cache_dir, CACHE_FILES[EMBEDDING_NAMESPACE])),
        EMBEDDING_NAMESPACE
    )

    try:
        logger.info("Loading + chunking docs...")
        documents = DocumentLoader(args.data_dir).load_documents()
        if not documents:
            logger.error(f"No documents found in {args.data_dir}")
            return 1

        chunks = ChunkingEngine(args.max_chars, args.overlap_chars).chunk_documents(documents)
        logger.info(f"Chunks: {len(chunks)} from {len(documents)} documents")

        cache.load()
        with RunLogger() as run_logger:
            embedder = CachedEmbedder(
                EmbeddingModel(model_name=args.model),
                cache,
                ResilientInvoker(run_logger=run_logger),
                model=args.model
            )
            store = build_index(chunks, embedder, args.batch_size)

        store.save(args.index)
        logger.info(f"Saved index: {args.index} ({len(store)} chunks)")
        return 0

    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by user")
        return 1
    except ServiceClientError as e:
        logger.error(f"Embedding failed: {e.error.code}: {e.error.message}")
        return 1
    except Exception as e:
        logger.error(f"Ingestion failed: {str(e)}", exc_info=True)
        return 1
    finally:
        cache.flush()


if __name__ == "__main__":
    sys.exit(main())

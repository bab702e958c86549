"""Tests for the index build script."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import numpy as np
from unittest.mock import Mock, patch
from ingest_documents import build_index, main
from models.chunk import Chunk
from services.content_cache import CachedEmbedder
from services.vector_store import LocalVectorStore


def make_chunks(count):
    return [
        Chunk(id=f"doc.md#{i}", source="doc.md", chunk_index=i, content=f"chunk {i}")
        for i in range(count)
    ]


def test_build_index_batches():
    embedder = Mock(spec=CachedEmbedder)
    embedder.embed_texts.side_effect = lambda texts: [np.array([1.0, 0.0]) for _ in texts]

    store = build_index(make_chunks(5), embedder, batch_size=2)

    assert len(store) == 5
    assert [len(c.args[0]) for c in embedder.embed_texts.call_args_list] == [2, 2, 1]
    assert store.items[4].id == "doc.md#4"


def test_main_writes_index(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "faq.md").write_text("Refunds take five days.", encoding="utf-8")
    index_path = tmp_path / "index" / "store.json"
    cache_dir = tmp_path / ".cache"

    with patch("ingest_documents.EmbeddingModel") as model_class, patch("ingest_documents.setup_logging"):
        model_class.return_value.embed_batch.side_effect = lambda texts, model=None: [[3.0, 4.0] for _ in texts]
        exit_code = main([
            "--data-dir", str(data_dir),
            "--index", str(index_path),
            "--cache-dir", str(cache_dir),
        ])

    assert exit_code == 0
    store = LocalVectorStore.load(str(index_path))
    assert len(store) == 1
    assert np.allclose(store.items[0].embedding_unit, [0.6, 0.8])
    assert (cache_dir / "embeddings.json").exists()


def test_main_without_documents(tmp_path):
    with patch("ingest_documents.setup_logging"):
        assert main(["--data-dir", str(tmp_path / "empty"), "--cache-dir", str(tmp_path)]) == 1

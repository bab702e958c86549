"""Configuration management for the local RAG question-answering tool."""
import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Model Configuration
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-mpnet-base-v2")
GENERATION_MODEL = os.getenv("GENERATION_MODEL", "llama-3.1-8b-instant")
HF_INFERENCE_URL = os.getenv(
    "HF_INFERENCE_URL",
    "https://router.huggingface.co/hf-inference/models"
)

# Paths
DATA_DIR = os.getenv("DATA_DIR", "data")
INDEX_PATH = os.getenv("INDEX_PATH", "index/store.json")
CACHE_DIR = os.getenv("CACHE_DIR", ".cache")

# Chunking Configuration
CHUNK_MAX_CHARS = _env_int("CHUNK_MAX_CHARS", 1200)
CHUNK_OVERLAP_CHARS = _env_int("CHUNK_OVERLAP_CHARS", 200)
EMBED_BATCH_SIZE = _env_int("EMBED_BATCH_SIZE", 64)

# Retrieval Configuration
PER_QUERY_TOP_K = _env_int("PER_QUERY_TOP_K", 8)
FINAL_TOP_K = _env_int("FINAL_TOP_K", 25)
DIVERSE_K = _env_int("DIVERSE_K", 6)
MMR_LAMBDA = _env_float("MMR_LAMBDA", 0.8)
MMR_MIN_KEEP = _env_float("MMR_MIN_KEEP", 0.1)

# Augmentation Configuration
USE_REWRITES = _env_bool("USE_REWRITES", True)
USE_HYDE = _env_bool("USE_HYDE", True)
MAX_REWRITES = _env_int("MAX_REWRITES", 3)


@dataclass
class PipelineConfig:
    """Every tunable of one question-answering run."""

    # Augmentation toggles
    use_rewrites: bool = USE_REWRITES
    use_hyde: bool = USE_HYDE
    max_rewrites: int = MAX_REWRITES

    # Retrieval
    per_query_top_k: int = PER_QUERY_TOP_K
    final_top_k: int = FINAL_TOP_K

    # Diversity selection (corpus dependent, tune per corpus)
    diverse_k: int = DIVERSE_K
    mmr_lambda: float = MMR_LAMBDA
    min_keep: float = MMR_MIN_KEEP

    # Models
    embedding_model: str = EMBEDDING_MODEL
    generation_model: str = GENERATION_MODEL
    answer_temperature: float = 0.2
    rewrite_temperature: float = 0.2
    hyde_temperature: float = 0.3

    # Storage
    index_path: str = INDEX_PATH
    cache_dir: str = CACHE_DIR

    def validate(self) -> None:
        """
        Check parameter ranges.

        Raises:
            ValueError: If a parameter is out of range
        """
        if self.per_query_top_k <= 0 or self.final_top_k <= 0:
            raise ValueError("per_query_top_k and final_top_k must be positive")
        if self.diverse_k <= 0:
            raise ValueError("diverse_k must be positive")
        if not 0.0 <= self.mmr_lambda <= 1.0:
            raise ValueError("mmr_lambda must be within [0, 1]")
        if self.max_rewrites < 0:
            raise ValueError("max_rewrites cannot be negative")

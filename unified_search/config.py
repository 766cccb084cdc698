"""Application configuration with sensible defaults."""
import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name, "").strip()
    return int(value) if value else None


# Vector length of the hosted embedding models
MODEL_DIMENSIONS = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}

# Upstream credentials (opaque, never persisted or logged)
EMBEDDING_API_KEY = os.getenv("EMBEDDING_API_KEY") or os.getenv("OPENAI_API_KEY", "")
INDEX_API_KEY = os.getenv("INDEX_API_KEY") or os.getenv("PINECONE_API_KEY", "")
INDEX_NAME = os.getenv("INDEX_NAME") or os.getenv("PINECONE_INDEX_NAME", "")

# Upstream services
EMBEDDING_BASE_URL = os.getenv("EMBEDDING_BASE_URL", "https://api.openai.com/v1")
INDEX_BASE_URL = os.getenv("INDEX_BASE_URL", "https://api.pinecone.io/v1")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-ada-002")
EMBEDDING_DIMENSION = _env_int("EMBEDDING_DIMENSION")  # None = use the known model dimension

# Retrieval parameters
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "10"))
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "5.0"))
UPSTREAM_MAX_ATTEMPTS = int(os.getenv("UPSTREAM_MAX_ATTEMPTS", "1"))         # 1 = no retry
UPSTREAM_RETRY_BASE_DELAY = float(os.getenv("UPSTREAM_RETRY_BASE_DELAY", "0.2"))
FALLBACK_ON_MISSING_CONFIG = _env_bool("FALLBACK_ON_MISSING_CONFIG", "true")

# HTTP service
CORS_ALLOW_ORIGIN = os.getenv("CORS_ALLOW_ORIGIN", "*")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class SearchSettings:
    """Explicit configuration handed to the retrieval pipeline."""

    embedding_api_key: str = field(default="", repr=False)
    index_api_key: str = field(default="", repr=False)
    index_name: str = ""
    embedding_base_url: str = "https://api.openai.com/v1"
    index_base_url: str = "https://api.pinecone.io/v1"
    embedding_model: str = "text-embedding-ada-002"
    embedding_dimension: Optional[int] = None  # None = detected from the first vector
    top_k: int = 10
    timeout: float = 5.0
    max_attempts: int = 1
    retry_base_delay: float = 0.2
    fallback_on_missing_config: bool = True

    def missing_fields(self) -> List[str]:
        """Names of required credentials that are not set."""
        required = ("embedding_api_key", "index_api_key", "index_name")
        return [name for name in required if not getattr(self, name)]

    @property
    def is_configured(self) -> bool:
        return not self.missing_fields()


def load_settings() -> SearchSettings:
    """Build SearchSettings from the environment-derived module constants."""
    return SearchSettings(
        embedding_api_key=EMBEDDING_API_KEY,
        index_api_key=INDEX_API_KEY,
        index_name=INDEX_NAME,
        embedding_base_url=EMBEDDING_BASE_URL.rstrip("/"),
        index_base_url=INDEX_BASE_URL.rstrip("/"),
        embedding_model=EMBEDDING_MODEL,
        embedding_dimension=EMBEDDING_DIMENSION or MODEL_DIMENSIONS.get(EMBEDDING_MODEL),
        top_k=RETRIEVAL_TOP_K,
        timeout=UPSTREAM_TIMEOUT,
        max_attempts=max(1, UPSTREAM_MAX_ATTEMPTS),
        retry_base_delay=UPSTREAM_RETRY_BASE_DELAY,
        fallback_on_missing_config=FALLBACK_ON_MISSING_CONFIG,
    )

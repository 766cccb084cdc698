"""Embedding service client with error mapping."""
import math
from typing import Dict, List, Optional
import httpx
import structlog

from unified_search.errors import (
    ConfigurationMissing,
    EmbeddingUnavailable,
    InvalidEmbeddingResponse,
)
from unified_search.upstream import UpstreamClient

logger = structlog.get_logger()


class EmbeddingClient(UpstreamClient):
    """Async client for an OpenAI-compatible embeddings API.

    Single attempt per call, no caching. Retries belong to the caller.
    """

    service_name = "embedding"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        dimension: Optional[int] = None,
        timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize embedding client.

        Args:
            api_key: Bearer credential for the embedding service
            model: Embedding model name
            base_url: Embedding API base URL
            dimension: Expected vector length (detected from the first vector if None)
            timeout: Request timeout in seconds
            http_client: Optional shared httpx client
        """
        super().__init__(base_url, timeout=timeout, http_client=http_client)
        self._api_key = api_key
        self.model = model
        self.dimension = dimension

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigurationMissing(["embedding_api_key"])

    async def embed(self, text: str) -> List[float]:
        """Generate the embedding vector for a text.

        Args:
            text: Non-empty text to embed

        Returns:
            Embedding vector

        Raises:
            ConfigurationMissing: If no API key is configured
            EmbeddingUnavailable: On non-2xx status, transport error or timeout
            InvalidEmbeddingResponse: On a malformed payload
        """
        self._require_key()

        logger.debug("embedding_request", model=self.model, text_length=len(text))

        try:
            response = await self._request(
                "POST", "/embeddings", json={"model": self.model, "input": text}
            )
        except httpx.TimeoutException as e:
            logger.error("embedding_timeout", model=self.model, timeout=self.timeout)
            raise EmbeddingUnavailable("Embedding service timed out") from e
        except httpx.HTTPError as e:
            logger.error("embedding_connection_error", error=str(e), base_url=self.base_url)
            raise EmbeddingUnavailable("Embedding service is unreachable") from e

        if not response.is_success:
            self._log_http_failure("embedding_http_error", response)
            raise EmbeddingUnavailable(
                f"Embedding service returned HTTP {response.status_code}"
            )

        vector = self._parse_vector(response)

        logger.debug("embedding_response", model=self.model, dimension=len(vector))

        return vector

    def _parse_vector(self, response: httpx.Response) -> List[float]:
        try:
            data = response.json()
        except ValueError as e:
            logger.error("embedding_invalid_json", body_preview=response.text[:200])
            raise InvalidEmbeddingResponse("Embedding service returned invalid JSON") from e

        items = data.get("data") if isinstance(data, dict) else None
        first = items[0] if isinstance(items, list) and items else None
        embedding = first.get("embedding") if isinstance(first, dict) else None

        if not isinstance(embedding, list) or not embedding:
            logger.error("embedding_missing_vector", keys=sorted(data) if isinstance(data, dict) else None)
            raise InvalidEmbeddingResponse("Embedding response has no vector")

        if not all(_is_number(v) for v in embedding):
            raise InvalidEmbeddingResponse("Embedding vector contains non-numeric values")

        if self.dimension is None:
            self.dimension = len(embedding)
            logger.info("embedding_dimension_detected", dimension=self.dimension, model=self.model)
        elif len(embedding) != self.dimension:
            logger.error(
                "embedding_dimension_mismatch",
                expected=self.dimension,
                actual=len(embedding),
                model=self.model,
            )
            raise InvalidEmbeddingResponse(
                f"Embedding dimension mismatch: expected {self.dimension}, "
                f"got {len(embedding)}"
            )

        return [float(v) for v in embedding]

    async def check(self) -> None:
        """Confirm the credential is accepted and the model exists.

        Raises:
            ConfigurationMissing: If no API key is configured
            EmbeddingUnavailable: If the service is unreachable or rejects the call
        """
        self._require_key()

        try:
            response = await self._request("GET", f"/models/{self.model}")
        except httpx.HTTPError as e:
            logger.error("embedding_health_error", error=str(e))
            raise EmbeddingUnavailable("Embedding service is unreachable") from e

        if not response.is_success:
            self._log_http_failure("embedding_health_http_error", response)
            raise EmbeddingUnavailable(
                f"Embedding service returned HTTP {response.status_code}"
            )


def _is_number(value) -> bool:
    # bool is an int subclass but never a valid vector component
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)

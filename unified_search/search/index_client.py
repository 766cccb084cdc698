"""Vector index client for nearest-neighbour queries.

Handles:
- Query vector validation before any network call
- Namespace (tenant partition) scoping
- HTTP status mapping (404 / 401 / other failures)
- Parsing of raw matches into typed records
"""
from typing import Any, Dict, List, Optional
import httpx
import structlog
from pydantic import ValidationError

from unified_search.errors import (
    ConfigurationMissing,
    IndexNotFound,
    IndexUnauthorized,
    IndexUnavailable,
    InvalidEmbeddingResponse,
    InvalidIndexResponse,
)
from unified_search.search.models import Match
from unified_search.upstream import UpstreamClient

logger = structlog.get_logger()


class IndexClient(UpstreamClient):
    """Async client for a hosted vector index with namespace support."""

    service_name = "index"

    def __init__(
        self,
        api_key: str,
        index_name: str,
        base_url: str = "https://api.pinecone.io/v1",
        dimension: Optional[int] = None,
        timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the index client.

        Args:
            api_key: Credential sent in the ``Api-Key`` header
            index_name: Name of the index to query
            base_url: Index API base URL
            dimension: Expected query vector length (detected from the first query if None)
            timeout: Request timeout in seconds
            http_client: Optional shared httpx client
        """
        super().__init__(base_url, timeout=timeout, http_client=http_client)
        self._api_key = api_key
        self.index_name = index_name
        self.dimension = dimension

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Api-Key"] = self._api_key
        return headers

    def _require_config(self) -> None:
        missing = []
        if not self._api_key:
            missing.append("index_api_key")
        if not self.index_name:
            missing.append("index_name")
        if missing:
            raise ConfigurationMissing(missing)

    def _validate_vector(self, vector: List[float]) -> None:
        # A bad query vector is an embedding fault and degrades the same way
        if not vector:
            raise InvalidEmbeddingResponse("Query vector is empty")

        if self.dimension is None:
            self.dimension = len(vector)
            logger.info("index_dimension_detected", index=self.index_name, dimension=self.dimension)
        elif len(vector) != self.dimension:
            logger.error(
                "index_dimension_mismatch",
                index=self.index_name,
                expected=self.dimension,
                actual=len(vector),
            )
            raise InvalidEmbeddingResponse(
                f"Query dimension mismatch: expected {self.dimension}, "
                f"got {len(vector)}"
            )

    async def query(
        self,
        vector: List[float],
        namespace: Optional[str] = None,
        top_k: int = 10,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[Match]:
        """Query the index for the nearest neighbours of a vector.

        Args:
            vector: Query embedding
            namespace: Tenant partition (None = root namespace)
            top_k: Maximum number of matches to return
            filter: Optional metadata filter forwarded to the index

        Returns:
            Matches in the order returned by the index (may be fewer than top_k)

        Raises:
            InvalidEmbeddingResponse: If the vector is empty or has the wrong dimension
            ConfigurationMissing: If credential or index name is not configured
            IndexNotFound: On HTTP 404
            IndexUnauthorized: On HTTP 401
            IndexUnavailable: On other HTTP errors, transport errors or timeouts
            InvalidIndexResponse: On a malformed payload
        """
        self._require_config()
        self._validate_vector(vector)

        payload: Dict[str, Any] = {
            "vector": vector,
            "topK": top_k,
            "includeMetadata": True,
        }
        if namespace is not None:
            payload["namespace"] = namespace
        if filter:
            payload["filter"] = filter

        logger.info(
            "index_query_started",
            index=self.index_name,
            namespace=namespace,
            top_k=top_k,
            has_filter=bool(filter),
        )

        try:
            response = await self._request(
                "POST", f"/indexes/{self.index_name}/query", json=payload
            )
        except httpx.TimeoutException as e:
            logger.error("index_timeout", index=self.index_name, timeout=self.timeout)
            raise IndexUnavailable("Vector index timed out") from e
        except httpx.HTTPError as e:
            logger.error("index_connection_error", error=str(e), base_url=self.base_url)
            raise IndexUnavailable("Vector index is unreachable") from e

        self._raise_for_status(response)

        matches = self._parse_matches(response, namespace)

        logger.info(
            "index_query_completed",
            index=self.index_name,
            namespace=namespace,
            results_found=len(matches),
        )

        return matches

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        self._log_http_failure("index_http_error", response)

        if response.status_code == 404:
            raise IndexNotFound(f"Vector index '{self.index_name}' was not found")
        if response.status_code == 401:
            raise IndexUnauthorized("Vector index rejected the configured API key")
        raise IndexUnavailable(f"Vector index returned HTTP {response.status_code}")

    def _parse_matches(
        self, response: httpx.Response, namespace: Optional[str]
    ) -> List[Match]:
        try:
            data = response.json()
        except ValueError as e:
            logger.error("index_invalid_json", body_preview=response.text[:200])
            raise InvalidIndexResponse("Vector index returned invalid JSON") from e

        if not isinstance(data, dict) or not isinstance(data.get("matches"), list):
            logger.error("index_missing_matches", body_preview=response.text[:200])
            raise InvalidIndexResponse("Vector index response has no matches list")

        # The index echoes the namespace it searched; "" is the root namespace
        echoed = data.get("namespace")
        if echoed and echoed != (namespace or ""):
            logger.error(
                "index_namespace_mismatch",
                requested=namespace,
                returned=echoed,
            )
            raise InvalidIndexResponse("Vector index answered for a different namespace")

        try:
            return [Match.model_validate(raw) for raw in data["matches"]]
        except ValidationError as e:
            logger.error("index_invalid_match", error_count=e.error_count())
            raise InvalidIndexResponse("Vector index returned malformed matches") from e

    async def check(self) -> None:
        """Confirm the index exists and the credential is accepted.

        Raises:
            ConfigurationMissing: If credential or index name is not configured
            IndexNotFound: On HTTP 404
            IndexUnauthorized: On HTTP 401
            IndexUnavailable: On other failures
        """
        self._require_config()

        try:
            response = await self._request("GET", f"/indexes/{self.index_name}")
        except httpx.HTTPError as e:
            logger.error("index_health_error", error=str(e))
            raise IndexUnavailable("Vector index is unreachable") from e

        self._raise_for_status(response)

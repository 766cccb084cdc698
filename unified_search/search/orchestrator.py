"""Retrieval orchestrator for semantic search.

Handles:
- Blank query short-circuit
- Query embedding and namespace-scoped index lookup
- Optional bounded retry of transient upstream failures
- Result normalization and ranking
- Degradation to a labelled fallback set
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar
import httpx
import structlog

from unified_search.config import SearchSettings
from unified_search.embedding_client import EmbeddingClient
from unified_search.errors import (
    ConfigurationMissing,
    EmbeddingUnavailable,
    IndexUnavailable,
    SearchError,
)
from unified_search.search.degradation import Outcome, classify, degraded_response
from unified_search.search.index_client import IndexClient
from unified_search.search.models import HealthReport, Query, SearchResponse
from unified_search.search.normalizer import normalize

logger = structlog.get_logger()

T = TypeVar("T")


class Orchestrator:
    """Entry point of the semantic retrieval pipeline.

    Holds only immutable settings and the two upstream clients, so one
    instance can serve concurrent requests from different tenants.
    """

    def __init__(
        self,
        settings: SearchSettings,
        embedding_client: Optional[EmbeddingClient] = None,
        index_client: Optional[IndexClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the orchestrator.

        Args:
            settings: Explicit pipeline configuration
            embedding_client: Embedding client (built from settings if not provided)
            index_client: Index client (built from settings if not provided)
            http_client: Shared httpx client passed to clients built here
        """
        self.settings = settings
        self.embedding_client = embedding_client or EmbeddingClient(
            api_key=settings.embedding_api_key,
            model=settings.embedding_model,
            base_url=settings.embedding_base_url,
            dimension=settings.embedding_dimension,
            timeout=settings.timeout,
            http_client=http_client,
        )
        self.index_client = index_client or IndexClient(
            api_key=settings.index_api_key,
            index_name=settings.index_name,
            base_url=settings.index_base_url,
            dimension=settings.embedding_dimension,
            timeout=settings.timeout,
            http_client=http_client,
        )

        logger.info(
            "orchestrator_initialized",
            embedding_model=settings.embedding_model,
            index_name=settings.index_name or None,
            top_k=settings.top_k,
            max_attempts=settings.max_attempts,
            configured=settings.is_configured,
        )

    async def search(self, query: Query) -> SearchResponse:
        """Run a semantic search for one query.

        Args:
            query: Query text, tenant and optional top_k / metadata filter

        Returns:
            SearchResponse with results sorted by score (best first), or the
            fallback set with ``degraded=True``

        Raises:
            IndexNotFound: If the configured index does not exist
            IndexUnauthorized: If the index credential is rejected
            ConfigurationMissing: If configuration is missing and fallback
                on missing configuration is disabled
        """
        if query.is_blank:
            logger.info("empty_query_provided", outcome=Outcome.NO_SEARCH.value)
            return SearchResponse()

        top_k = query.top_k or self.settings.top_k
        namespace = query.namespace

        logger.info(
            "search_started",
            tenant_id=query.tenant_id,
            query_length=len(query.text),
            top_k=top_k,
        )

        try:
            missing = self.settings.missing_fields()
            if missing:
                raise ConfigurationMissing(missing)

            vector = await self._attempt(
                lambda: self.embedding_client.embed(query.text),
                retry_on=EmbeddingUnavailable,
            )
            matches = await self._attempt(
                lambda: self.index_client.query(
                    vector, namespace=namespace, top_k=top_k, filter=query.filter
                ),
                retry_on=IndexUnavailable,
            )

        except SearchError as e:
            outcome = classify(e, self.settings.fallback_on_missing_config)
            if outcome is Outcome.DEGRADED:
                return degraded_response(query.text, e)

            logger.error(
                "search_failed",
                tenant_id=query.tenant_id,
                error_code=e.code,
                error=e.message,
            )
            raise

        results = normalize(matches, sort_by_score=True)

        logger.info(
            "search_completed",
            tenant_id=query.tenant_id,
            outcome=Outcome.COMPLETED.value,
            results_returned=len(results),
            top_score=results[0].score if results else None,
        )

        return SearchResponse(results=results)

    async def _attempt(
        self,
        call: Callable[[], Awaitable[T]],
        retry_on: type,
    ) -> T:
        """Run an upstream call with bounded exponential backoff.

        Only ``retry_on`` errors are retried; everything else propagates on
        the first failure. ``max_attempts=1`` means a single attempt.
        """
        attempts = max(1, self.settings.max_attempts)
        delay = self.settings.retry_base_delay

        attempt = 1
        while True:
            try:
                return await call()
            except retry_on as e:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "upstream_retry",
                    attempt=attempt,
                    max_attempts=attempts,
                    error_code=e.code,
                    delay=delay,
                )
            await asyncio.sleep(delay)
            delay *= 2
            attempt += 1

    async def health(self) -> HealthReport:
        """Check that credentials are present and both upstreams answer.

        Runs no query. Missing configuration is reported by field name only.
        """
        missing = self.settings.missing_fields()
        if missing:
            logger.warning("health_configuration_missing", missing=missing)
            return HealthReport(
                status="error",
                checks={"configuration": False, "embedding": False, "index": False},
                error=ConfigurationMissing(missing).message,
            )

        embedding_result, index_result = await asyncio.gather(
            self.embedding_client.check(),
            self.index_client.check(),
            return_exceptions=True,
        )

        checks = {"configuration": True}
        errors = []
        for name, result in (("embedding", embedding_result), ("index", index_result)):
            if isinstance(result, SearchError):
                checks[name] = False
                errors.append(result.message)
            elif isinstance(result, BaseException):
                raise result
            else:
                checks[name] = True

        if errors:
            logger.warning("health_check_failed", checks=checks)
            return HealthReport(status="error", checks=checks, error="; ".join(errors))

        return HealthReport(status="ok", checks=checks)

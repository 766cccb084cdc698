"""Degradation policy: what to return when the real query cannot complete.

Outcomes:
- NO_SEARCH: blank query, nothing is called, empty results
- COMPLETED: upstreams answered (zero matches is a legitimate empty result)
- DEGRADED: configuration missing or an upstream is unavailable; a labelled
  fallback set is returned instead of an error
- FAILED: operator misconfiguration (index not found / unauthorized); the
  error is surfaced to the caller
"""
from enum import Enum
from typing import List
import structlog

from unified_search.errors import (
    ConfigurationMissing,
    EmbeddingUnavailable,
    IndexNotFound,
    IndexUnauthorized,
    IndexUnavailable,
    SearchError,
)
from unified_search.search.models import Platform, SearchResponse, SearchResult

logger = structlog.get_logger()

FALLBACK_NOTICE_TITLE = "Semantic search unavailable: showing sample results"


class Outcome(str, Enum):
    NO_SEARCH = "no_search"
    COMPLETED = "completed"
    DEGRADED = "degraded"
    FAILED = "failed"


# Built-in sample corpus shown while the real pipeline is unavailable
MOCK_CORPUS: List[SearchResult] = [
    SearchResult(
        platform=Platform.SLACK,
        title="Team Discussion: Q1 Planning",
        preview="Let's align on our key objectives for Q1. I think we should focus on...",
        timestamp="2 hours ago",
        link="#",
        score=0.0,
    ),
    SearchResult(
        platform=Platform.JIRA,
        title="PROJ-123: Implement Search Functionality",
        preview="Add unified search capability across all connected platforms...",
        timestamp="1 day ago",
        link="#",
        score=0.0,
    ),
    SearchResult(
        platform=Platform.CONFLUENCE,
        title="Project Documentation: Search Engine",
        preview="Technical documentation for the unified search engine implementation...",
        timestamp="3 days ago",
        link="#",
        score=0.0,
    ),
    SearchResult(
        platform=Platform.DRIVE,
        title="Q1 2025 Strategy Deck.pdf",
        preview="Quarterly strategy presentation including market analysis...",
        timestamp="1 week ago",
        link="#",
        score=0.0,
    ),
]


def classify(error: SearchError, fallback_on_missing_config: bool = True) -> Outcome:
    """Decide whether a pipeline error degrades or fails the request."""
    if isinstance(error, (IndexNotFound, IndexUnauthorized)):
        return Outcome.FAILED
    if isinstance(error, ConfigurationMissing):
        return Outcome.DEGRADED if fallback_on_missing_config else Outcome.FAILED
    if isinstance(error, (EmbeddingUnavailable, IndexUnavailable)):
        return Outcome.DEGRADED
    return Outcome.FAILED


def fallback_results(query_text: str) -> List[SearchResult]:
    """Labelled notice followed by sample results matching the query.

    The sample corpus is filtered by case-insensitive substring over title
    and preview; when nothing matches the whole corpus is returned. The list
    is never empty and its first entry always signals the fallback.
    """
    needle = query_text.strip().lower()
    matching = [
        r for r in MOCK_CORPUS
        if needle in r.title.lower() or needle in r.preview.lower()
    ]

    notice = SearchResult(
        platform=Platform.UNKNOWN,
        title=FALLBACK_NOTICE_TITLE,
        preview="Live results could not be retrieved. These sample results are for illustration only.",
        timestamp="Now",
        link="#",
        score=0.0,
    )

    return [notice] + [r.model_copy() for r in (matching or MOCK_CORPUS)]


def degraded_response(query_text: str, error: SearchError) -> SearchResponse:
    """Build the fallback response for a recoverable failure."""
    logger.warning(
        "search_degraded",
        reason=error.code,
        error=error.message,
        query_preview=query_text[:100],
    )
    return SearchResponse(
        results=fallback_results(query_text),
        degraded=True,
        reason=_reason(error),
    )


def _reason(error: SearchError) -> str:
    if isinstance(error, ConfigurationMissing):
        return "configuration_missing"
    if isinstance(error, EmbeddingUnavailable):
        return "embedding_unavailable"
    return "index_unavailable"

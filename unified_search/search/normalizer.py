"""Map raw index matches onto the canonical SearchResult shape."""
from typing import Iterable, List, Optional

from unified_search.search.models import Match, Platform, SearchResult

PREVIEW_LENGTH = 150
ELLIPSIS = "..."

DEFAULT_TITLE = "Untitled"
DEFAULT_PREVIEW = "No preview available"
DEFAULT_TIMESTAMP = "Unknown time"
DEFAULT_LINK = "#"


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value
    return None


def parse_platform(value: Optional[str]) -> Platform:
    """Resolve a platform name case-insensitively, defaulting to UNKNOWN."""
    if not value:
        return Platform.UNKNOWN
    try:
        return Platform(value.strip().lower())
    except ValueError:
        return Platform.UNKNOWN


def make_preview(content: Optional[str]) -> str:
    """Truncate content to PREVIEW_LENGTH characters plus an ellipsis."""
    if not content:
        return DEFAULT_PREVIEW
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + ELLIPSIS
    return content


def normalize_match(match: Match) -> SearchResult:
    """Convert a single match, filling every missing field with its default."""
    meta = match.metadata
    content = _first(meta.content, meta.text)

    return SearchResult(
        platform=parse_platform(_first(meta.platform, meta.source)),
        title=_first(meta.title, meta.file_name) or DEFAULT_TITLE,
        preview=make_preview(content),
        timestamp=_first(meta.timestamp, meta.date) or DEFAULT_TIMESTAMP,
        link=_first(meta.link) or DEFAULT_LINK,
        score=match.score,
        content=content,
    )


def normalize(matches: Iterable[Match], sort_by_score: bool = False) -> List[SearchResult]:
    """Normalize matches into SearchResults.

    Args:
        matches: Raw matches in upstream order
        sort_by_score: Sort by score descending; ties keep upstream order

    Returns:
        List of SearchResult objects
    """
    results = [normalize_match(m) for m in matches]

    if sort_by_score:
        # sorted() is stable, including with reverse=True
        results = sorted(results, key=lambda r: r.score, reverse=True)

    return results

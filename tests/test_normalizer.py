"""Tests for match normalization."""
import pytest
from pydantic import ValidationError

from unified_search.search.models import Match, MatchMetadata, Platform
from unified_search.search.normalizer import (
    PREVIEW_LENGTH,
    make_preview,
    normalize,
    normalize_match,
    parse_platform,
)


def _match(score=0.5, **metadata):
    return Match(id=f"m-{score}", score=score, metadata=MatchMetadata(**metadata))


def test_missing_metadata_gets_defaults():
    result = normalize_match(Match(id="bare", score=0.3))

    assert result.platform == Platform.UNKNOWN
    assert result.title == "Untitled"
    assert result.preview == "No preview available"
    assert result.timestamp == "Unknown time"
    assert result.link == "#"
    assert result.score == 0.3
    assert result.content is None


def test_full_metadata_is_mapped():
    result = normalize_match(_match(
        score=0.8,
        platform="jira",
        title="PROJ-123: Implement Search",
        content="Add unified search capability.",
        timestamp="1 day ago",
        link="https://jira.example.com/browse/PROJ-123",
    ))

    assert result.platform == Platform.JIRA
    assert result.title == "PROJ-123: Implement Search"
    assert result.preview == "Add unified search capability."
    assert result.content == "Add unified search capability."
    assert result.timestamp == "1 day ago"
    assert result.link == "https://jira.example.com/browse/PROJ-123"


def test_alternate_metadata_keys_are_used_as_fallbacks():
    result = normalize_match(_match(
        source="Confluence",
        file_name="architecture.md",
        text="Search engine design notes",
        date="2025-01-14",
    ))

    assert result.platform == Platform.CONFLUENCE
    assert result.title == "architecture.md"
    assert result.content == "Search engine design notes"
    assert result.timestamp == "2025-01-14"


def test_blank_strings_count_as_missing():
    result = normalize_match(_match(title="   ", link=""))

    assert result.title == "Untitled"
    assert result.link == "#"


def test_unknown_platform_maps_to_unknown():
    assert parse_platform("github") == Platform.UNKNOWN
    assert parse_platform(None) == Platform.UNKNOWN
    assert parse_platform(" SLACK ") == Platform.SLACK


def test_non_string_metadata_values_are_coerced():
    match = Match.model_validate({
        "id": 42,
        "score": 1,
        "metadata": {"title": 2025, "timestamp": 1700000000, "link": {"href": "x"}},
    })
    result = normalize_match(match)

    assert match.id == "42"
    assert result.title == "2025"
    assert result.timestamp == "1700000000"
    assert result.link == "#"


def test_null_metadata_is_tolerated():
    match = Match.model_validate({"id": "a", "score": 0.1, "metadata": None})

    assert normalize_match(match).title == "Untitled"


def test_preview_truncates_long_content():
    content = "x" * (PREVIEW_LENGTH + 1)
    preview = make_preview(content)

    assert preview == "x" * PREVIEW_LENGTH + "..."
    assert len(preview) == PREVIEW_LENGTH + 3


def test_preview_keeps_content_at_limit_verbatim():
    content = "y" * PREVIEW_LENGTH

    assert make_preview(content) == content


def test_full_content_kept_when_preview_truncated():
    content = "z" * 400
    result = normalize_match(_match(content=content))

    assert result.content == content
    assert result.preview.endswith("...")


def test_order_preserved_without_sorting():
    matches = [_match(0.2), _match(0.9), _match(0.5)]

    assert [r.score for r in normalize(matches)] == [0.2, 0.9, 0.5]


def test_sort_by_score_is_descending_and_stable():
    matches = [
        _match(0.5, title="first tie"),
        _match(0.9, title="best"),
        _match(0.5, title="second tie"),
        _match(0.1, title="worst"),
    ]

    results = normalize(matches, sort_by_score=True)

    assert [r.title for r in results] == ["best", "first tie", "second tie", "worst"]


def test_scores_outside_unit_range_are_kept():
    results = normalize([_match(12.5), _match(-3.0)], sort_by_score=True)

    assert [r.score for r in results] == [12.5, -3.0]


@pytest.mark.parametrize("score", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_scores_are_rejected(score):
    with pytest.raises(ValidationError):
        Match.model_validate({"id": "a", "score": score})


def test_empty_input():
    assert normalize([]) == []

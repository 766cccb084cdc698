"""Pytest configuration and fixtures for the search pipeline tests."""
from typing import Dict, List
import pytest

from unified_search.config import SearchSettings


@pytest.fixture
def settings() -> SearchSettings:
    """Fully configured settings pointing at fake upstream hosts."""
    return SearchSettings(
        embedding_api_key="sk-test",
        index_api_key="pc-test",
        index_name="unified",
        embedding_base_url="https://embed.test/v1",
        index_base_url="https://index.test/v1",
        retry_base_delay=0.0,
    )


@pytest.fixture
def q1_matches() -> Dict[str, List[dict]]:
    """Two root-namespace matches returned out of score order."""
    return {
        "": [
            {
                "id": "slack-1",
                "score": 0.72,
                "metadata": {
                    "platform": "slack",
                    "title": "Team Discussion: Q1 Planning",
                    "content": "Let's align on our key objectives for Q1.",
                    "timestamp": "2 hours ago",
                    "link": "https://chat.example.com/archives/C1/p1",
                },
            },
            {
                "id": "drive-1",
                "score": 0.91,
                "metadata": {
                    "platform": "drive",
                    "title": "Q1 2025 Strategy Deck.pdf",
                    "content": "Quarterly strategy presentation.",
                    "timestamp": "1 week ago",
                    "link": "https://drive.example.com/d/1",
                },
            },
        ]
    }

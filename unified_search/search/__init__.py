"""Semantic retrieval pipeline components.

This package contains modules for:
- Vector index queries scoped to a tenant namespace
- Normalization of raw matches into SearchResults
- Degradation to a labelled fallback set
- Orchestration of the full search flow
"""
from unified_search.search.models import Query, SearchResponse, SearchResult
from unified_search.search.orchestrator import Orchestrator

__all__ = ["Orchestrator", "Query", "SearchResponse", "SearchResult"]

"""Request-scoped data types for the retrieval pipeline."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TENANT = "default"


class Platform(str, Enum):
    """Knowledge source a result came from."""
    SLACK = "slack"
    JIRA = "jira"
    CONFLUENCE = "confluence"
    DRIVE = "drive"
    UNKNOWN = "unknown"


class MatchMetadata(BaseModel):
    """Typed view of the free-form metadata stored next to a vector.

    Every field is optional. Alternate keys written by different ingestion
    sources (``source``, ``file_name``, ``text``, ``date``) are kept so the
    normalizer can fall back to them.
    """

    model_config = ConfigDict(extra="ignore")

    platform: Optional[str] = None
    source: Optional[str] = None
    title: Optional[str] = None
    file_name: Optional[str] = None
    content: Optional[str] = None
    text: Optional[str] = None
    timestamp: Optional[str] = None
    date: Optional[str] = None
    link: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None


class Match(BaseModel):
    """A raw nearest-neighbour hit returned by the vector index."""

    id: str = ""
    score: float = Field(default=0.0, allow_inf_nan=False)
    metadata: MatchMetadata = Field(default_factory=MatchMetadata)

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_default(cls, value: Any) -> Any:
        return {} if value is None else value


class SearchResult(BaseModel):
    """Canonical, consumer-facing search result."""

    platform: Platform = Platform.UNKNOWN
    title: str
    preview: str
    timestamp: str
    link: str
    score: float
    content: Optional[str] = None


class SemanticSearchRequest(BaseModel):
    """Body of ``POST /search/semantic``."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(default="", max_length=2000)
    tenant_id: Optional[str] = Field(default=DEFAULT_TENANT, alias="tenantId", max_length=200)
    top_k: Optional[int] = Field(default=None, alias="topK", ge=1, le=100)
    filter: Optional[Dict[str, Any]] = None


@dataclass
class Query:
    """A single search request."""

    text: str
    tenant_id: Optional[str] = DEFAULT_TENANT
    top_k: Optional[int] = None
    filter: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        tenant = (self.tenant_id or "").strip()
        self.tenant_id = tenant or DEFAULT_TENANT

    @property
    def is_blank(self) -> bool:
        return not self.text or not self.text.strip()

    @property
    def namespace(self) -> Optional[str]:
        """Index namespace for this tenant (None = root namespace)."""
        if self.tenant_id == DEFAULT_TENANT:
            return None
        return self.tenant_id


@dataclass
class SearchResponse:
    """Envelope returned by the orchestrator."""

    results: List[SearchResult] = field(default_factory=list)
    degraded: bool = False
    reason: Optional[str] = None


@dataclass
class HealthReport:
    """Outcome of the liveness probe against both upstreams."""

    status: str
    checks: Dict[str, bool] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

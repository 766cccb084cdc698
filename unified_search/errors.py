"""Error taxonomy for the semantic search pipeline.

Every error carries a short message that is safe to show to a caller and a
machine-readable ``code``. Upstream payloads and credentials never end up in
the message; they are only logged (truncated) where the error is raised.
"""


class SearchError(Exception):
    """Base class for all pipeline errors."""

    code = "search_error"

    def __init__(self, message: str = "Search failed"):
        super().__init__(message)
        self.message = message


class ConfigurationMissing(SearchError):
    """A required credential or setting is not configured."""

    code = "configuration_missing"

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class EmbeddingUnavailable(SearchError):
    """The embedding service failed, timed out or could not be reached."""

    code = "embedding_unavailable"


class IndexUnavailable(SearchError):
    """The vector index failed, timed out or could not be reached."""

    code = "index_unavailable"


class IndexNotFound(SearchError):
    """The configured index name does not exist (HTTP 404)."""

    code = "index_not_found"


class IndexUnauthorized(SearchError):
    """The index rejected the configured credential (HTTP 401)."""

    code = "index_unauthorized"


class InvalidResponseShape(SearchError):
    """An upstream payload is missing expected fields."""

    code = "invalid_response_shape"


class InvalidEmbeddingResponse(InvalidResponseShape, EmbeddingUnavailable):
    """Malformed embedding payload; handled like EmbeddingUnavailable."""

    code = "invalid_embedding_response"


class InvalidIndexResponse(InvalidResponseShape, IndexUnavailable):
    """Malformed index payload; handled like IndexUnavailable."""

    code = "invalid_index_response"

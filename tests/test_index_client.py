"""Tests for the vector index client."""
import json
import httpx
import pytest

from unified_search.errors import (
    ConfigurationMissing,
    EmbeddingUnavailable,
    IndexNotFound,
    IndexUnauthorized,
    IndexUnavailable,
    InvalidEmbeddingResponse,
    InvalidIndexResponse,
)
from unified_search.search.index_client import IndexClient

VECTOR = [0.1, 0.2, 0.3]


def _client(handler, api_key="pc-test", index_name="unified", dimension=None):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = IndexClient(
        api_key=api_key,
        index_name=index_name,
        base_url="https://index.test/v1",
        dimension=dimension,
        http_client=http,
    )
    return client, http


def _recording(seen, payload=None, status=200):
    def handler(request):
        seen.append(request)
        return httpx.Response(status, json=payload if payload is not None else {"matches": []})
    return handler


@pytest.mark.asyncio
async def test_query_payload_for_root_namespace_omits_namespace():
    seen = []
    client, http = _client(_recording(seen))
    async with http:
        await client.query(VECTOR, namespace=None, top_k=10)

    request = seen[0]
    body = json.loads(request.content)
    assert str(request.url) == "https://index.test/v1/indexes/unified/query"
    assert request.headers["Api-Key"] == "pc-test"
    assert body == {"vector": VECTOR, "topK": 10, "includeMetadata": True}


@pytest.mark.asyncio
async def test_query_payload_carries_tenant_namespace_and_filter():
    seen = []
    client, http = _client(_recording(seen))
    async with http:
        await client.query(VECTOR, namespace="tenantA", top_k=3, filter={"platform": "jira"})

    body = json.loads(seen[0].content)
    assert body["namespace"] == "tenantA"
    assert body["topK"] == 3
    assert body["filter"] == {"platform": "jira"}


@pytest.mark.asyncio
async def test_matches_are_parsed_in_upstream_order():
    payload = {
        "matches": [
            {"id": "a", "score": 0.4, "metadata": {"title": "A"}},
            {"id": "b", "score": 0.9},
        ],
        "namespace": "",
    }
    client, http = _client(lambda request: httpx.Response(200, json=payload))
    async with http:
        matches = await client.query(VECTOR)

    assert [m.id for m in matches] == ["a", "b"]
    assert matches[0].metadata.title == "A"
    assert matches[1].metadata.title is None


@pytest.mark.asyncio
async def test_zero_matches_is_not_an_error():
    client, http = _client(lambda request: httpx.Response(200, json={"matches": []}))
    async with http:
        assert await client.query(VECTOR) == []


@pytest.mark.asyncio
async def test_404_raises_index_not_found():
    client, http = _client(lambda request: httpx.Response(404, text="not found"))
    async with http:
        with pytest.raises(IndexNotFound) as excinfo:
            await client.query(VECTOR)

    assert "unified" in excinfo.value.message
    assert not isinstance(excinfo.value, IndexUnavailable)


@pytest.mark.asyncio
async def test_401_raises_index_unauthorized():
    client, http = _client(lambda request: httpx.Response(401, json={"message": "Invalid API Key pc-test"}))
    async with http:
        with pytest.raises(IndexUnauthorized) as excinfo:
            await client.query(VECTOR)

    assert "pc-test" not in excinfo.value.message
    assert not isinstance(excinfo.value, IndexUnavailable)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 429, 500, 503])
async def test_other_statuses_raise_unavailable(status):
    client, http = _client(lambda request: httpx.Response(status))
    async with http:
        with pytest.raises(IndexUnavailable):
            await client.query(VECTOR)


@pytest.mark.asyncio
async def test_timeout_raises_unavailable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    client, http = _client(handler)
    async with http:
        with pytest.raises(IndexUnavailable, match="timed out"):
            await client.query(VECTOR)


@pytest.mark.asyncio
async def test_network_error_raises_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, http = _client(handler)
    async with http:
        with pytest.raises(IndexUnavailable):
            await client.query(VECTOR)


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {},
    {"matches": None},
    {"matches": "nope"},
    {"matches": [{"id": "a", "score": "high"}]},
    {"matches": ["not-a-match"]},
])
async def test_malformed_payload_raises_invalid_shape(payload):
    client, http = _client(lambda request: httpx.Response(200, json=payload))
    async with http:
        with pytest.raises(InvalidIndexResponse) as excinfo:
            await client.query(VECTOR)

    assert isinstance(excinfo.value, IndexUnavailable)


@pytest.mark.asyncio
@pytest.mark.parametrize("score", ["NaN", "Infinity", "-Infinity"])
async def test_non_finite_score_raises_invalid_shape(score):
    body = '{"matches": [{"id": "a", "score": 0.5}, {"id": "b", "score": %s}]}' % score

    def handler(request):
        return httpx.Response(
            200, content=body.encode(), headers={"Content-Type": "application/json"}
        )

    client, http = _client(handler)
    async with http:
        with pytest.raises(InvalidIndexResponse, match="malformed matches"):
            await client.query(VECTOR)


@pytest.mark.asyncio
async def test_foreign_namespace_in_response_is_rejected():
    payload = {"matches": [{"id": "secret", "score": 0.99}], "namespace": "tenantB"}
    client, http = _client(lambda request: httpx.Response(200, json=payload))
    async with http:
        with pytest.raises(InvalidIndexResponse, match="different namespace"):
            await client.query(VECTOR, namespace="tenantA")


@pytest.mark.asyncio
async def test_named_namespace_in_response_is_rejected_for_root_query():
    payload = {"matches": [], "namespace": "tenantB"}
    client, http = _client(lambda request: httpx.Response(200, json=payload))
    async with http:
        with pytest.raises(InvalidIndexResponse):
            await client.query(VECTOR, namespace=None)


@pytest.mark.asyncio
async def test_invalid_vector_is_rejected_before_network_call():
    seen = []
    client, http = _client(_recording(seen), dimension=3)
    async with http:
        with pytest.raises(InvalidEmbeddingResponse):
            await client.query([])
        with pytest.raises(InvalidEmbeddingResponse, match="dimension mismatch"):
            await client.query([0.1, 0.2])

    assert seen == []


@pytest.mark.asyncio
async def test_invalid_vector_degrades_like_embedding_failure():
    client, http = _client(_recording([]), dimension=3)
    async with http:
        with pytest.raises(EmbeddingUnavailable):
            await client.query([0.1, 0.2])


@pytest.mark.asyncio
async def test_dimension_is_detected_from_first_query_when_unset():
    seen = []
    client, http = _client(_recording(seen))
    async with http:
        await client.query(VECTOR)
        with pytest.raises(InvalidEmbeddingResponse, match="expected 3, got 5"):
            await client.query([0.1, 0.2, 0.3, 0.4, 0.5])

    assert client.dimension == 3
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_missing_configuration_raises_without_network_call():
    seen = []
    client, http = _client(_recording(seen), api_key="", index_name="")
    async with http:
        with pytest.raises(ConfigurationMissing) as excinfo:
            await client.query(VECTOR)

    assert excinfo.value.missing == ["index_api_key", "index_name"]
    assert seen == []


@pytest.mark.asyncio
async def test_check_describes_index():
    seen = []
    client, http = _client(_recording(seen, payload={"name": "unified"}))
    async with http:
        await client.check()

    assert seen[0].method == "GET"
    assert str(seen[0].url) == "https://index.test/v1/indexes/unified"


@pytest.mark.asyncio
async def test_check_maps_unauthorized():
    client, http = _client(lambda request: httpx.Response(401))
    async with http:
        with pytest.raises(IndexUnauthorized):
            await client.check()

"""Main Quart application for the Unified Search service."""
import logging
from typing import Optional
import httpx
from pydantic import ValidationError
from quart import Quart, jsonify, request
import structlog

from unified_search import config
from unified_search.errors import ConfigurationMissing, SearchError
from unified_search.search import Orchestrator, Query
from unified_search.search.models import SemanticSearchRequest

logging.basicConfig(level=config.LOG_LEVEL, format="%(message)s")

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()

app = Quart(__name__)

# Shared connection pool, owned by the serving lifecycle
_http_client: Optional[httpx.AsyncClient] = None
_orchestrator: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """Get or create the orchestrator for this process."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = Orchestrator(config.load_settings(), http_client=_http_client)
    return _orchestrator


@app.before_serving
async def startup():
    """Open the shared upstream connection pool."""
    global _http_client, _orchestrator
    _http_client = httpx.AsyncClient(
        timeout=config.UPSTREAM_TIMEOUT,
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )
    _orchestrator = Orchestrator(config.load_settings(), http_client=_http_client)
    logger.info("service_started")


@app.after_serving
async def shutdown():
    """Close the shared upstream connection pool."""
    global _http_client, _orchestrator
    if _http_client is not None:
        await _http_client.aclose()
    _http_client = None
    _orchestrator = None
    logger.info("service_stopped")


@app.after_request
async def add_cors_headers(response):
    """Allow browser clients to call the API directly."""
    response.headers["Access-Control-Allow-Origin"] = config.CORS_ALLOW_ORIGIN
    response.headers["Access-Control-Allow-Headers"] = (
        "authorization, x-client-info, apikey, content-type"
    )
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Expose-Headers"] = (
        "X-Search-Degraded, X-Search-Degraded-Reason"
    )
    return response


@app.route("/search/semantic", methods=["POST", "OPTIONS"])
async def semantic_search():
    """Run a semantic search.

    Expects JSON body:
    {
        "query": "free text",
        "tenantId": "optional tenant, defaults to 'default'",
        "topK": 10,  // optional, 1-100
        "filter": {...}  // optional metadata filter
    }

    Returns a JSON array of results:
    [
        {
            "platform": "slack",
            "title": "...",
            "preview": "...",
            "timestamp": "...",
            "link": "...",
            "score": 0.91,
            "content": "..."
        },
        ...
    ]

    The X-Search-Degraded header is "true" when fallback results were served.
    """
    if request.method == "OPTIONS":
        return "", 204

    data = await request.get_json(silent=True)

    if not isinstance(data, dict):
        logger.error("invalid_request_body")
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        body = SemanticSearchRequest.model_validate(data)
    except ValidationError as e:
        logger.warning("search_request_rejected", error_count=e.error_count())
        return jsonify({
            "error": "Invalid search request",
            "details": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        }), 400

    query = Query(
        text=body.query,
        tenant_id=body.tenant_id,
        top_k=body.top_k,
        filter=body.filter,
    )

    logger.info(
        "search_request_received",
        tenant_id=query.tenant_id,
        query_length=len(query.text),
        user_query_preview=query.text[:100],
    )

    try:
        result = await get_orchestrator().search(query)

    except ConfigurationMissing as e:
        return jsonify({"error": e.message, "code": e.code}), 503

    except SearchError as e:
        return jsonify({"error": e.message, "code": e.code}), 502

    except Exception as e:
        logger.error("search_endpoint_error", error=str(e), error_type=type(e).__name__)
        return jsonify({
            "error": "An error occurred processing your search. Please try again."
        }), 500

    response = jsonify([r.model_dump(mode="json") for r in result.results])
    response.headers["X-Search-Degraded"] = "true" if result.degraded else "false"
    if result.reason:
        response.headers["X-Search-Degraded-Reason"] = result.reason

    return response


@app.route("/search/health")
async def search_health():
    """Check credentials are present and both upstreams are reachable.

    Returns JSON:
    {
        "status": "ok" | "error",
        "checks": {"configuration": true, "embedding": true, "index": true},
        "error": "..."  // only when status is "error"
    }
    """
    try:
        report = await get_orchestrator().health()
    except Exception as e:
        logger.error("health_check_failed", error=str(e), error_type=type(e).__name__)
        return jsonify({"status": "error", "error": "Health check failed"}), 503

    body = {"status": report.status, "checks": report.checks}
    if report.error:
        body["error"] = report.error

    return jsonify(body), 200 if report.ok else 503


@app.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    # For development - use hypercorn unified_search.main:app in production
    app.run(host="0.0.0.0", port=5000, debug=True)

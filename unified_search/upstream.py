"""Shared HTTP plumbing for the embedding and index clients."""
from typing import Any, Dict, Optional
import httpx
import structlog

logger = structlog.get_logger()


class UpstreamClient:
    """Base class for async clients of a single upstream JSON API.

    A shared ``httpx.AsyncClient`` (connection pool) may be injected by the
    owner of the process lifecycle. Without one, every call opens a
    short-lived client. Either way each request is bounded by ``timeout``.
    """

    service_name = "upstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Root URL of the upstream API (no trailing slash)
            timeout: Per-request timeout in seconds
            http_client: Optional shared client; not closed by this object
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send one request and return the response without raising on status.

        Raises:
            httpx.HTTPError: On transport errors and timeouts
        """
        url = f"{self.base_url}{path}"

        if self._http is not None:
            return await self._http.request(
                method, url, json=json, headers=self._headers(), timeout=self.timeout
            )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, json=json, headers=self._headers())

    def _log_http_failure(self, event: str, response: httpx.Response) -> None:
        logger.error(
            event,
            service=self.service_name,
            status_code=response.status_code,
            body_preview=response.text[:200],
        )

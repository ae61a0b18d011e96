"""HTTP client for the chat service API.

Hidden design decisions:
- Base URL layout (requests are routed through a proxy that takes the
  API path as a query parameter suffix)
- JSON encoding of requests and responses
- Mapping of non-2xx responses to ServiceError
"""

from typing import Any

import httpx

from ..errors import ServiceError
from .models import Health, ModelsStatus

DEFAULT_API_BASE = "http://localhost:8000/mcp/api/proxy?path=api"


class ServiceClient:
    """Thin async JSON client for the chat service.

    Supports async context manager protocol:
        async with ServiceClient(base) as client:
            health = await client.health()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        **client_kwargs: Any
    ):
        """Initialize the client.

        Args:
            base_url: API base; the request path is appended verbatim
            timeout: Request timeout in seconds
            transport: Optional transport (used to inject mock transports)
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            **client_kwargs
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        """Build the full URL for an API path such as ``/health``."""
        if not path.startswith("/"):
            path = "/" + path
        return f"{self._base_url}{path}"

    async def request(
        self,
        path: str,
        method: str = "GET",
        json: Any | None = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Args:
            path: API path, e.g. ``/rag/query``
            method: HTTP method
            json: Optional JSON payload

        Returns:
            Decoded JSON response

        Raises:
            ServiceError: If the service answers with a non-2xx status
            httpx.HTTPError: On transport failures
        """
        response = await self._client.request(method, self.url_for(path), json=json)
        if not response.is_success:
            raise ServiceError(response.status_code, response.reason_phrase, response.text)
        if not response.content:
            return None
        return response.json()

    async def health(self) -> Health:
        """Fetch service health, filling in defaults for missing fields."""
        raw = await self.request("/health") or {}
        return Health.from_raw(raw)

    async def models_status(self) -> ModelsStatus:
        """Fetch model availability.

        Degrades to an ``unknown`` status instead of raising, since the
        model list is informational only.
        """
        try:
            raw = await self.request("/models/status") or {}
        except (ServiceError, httpx.HTTPError):
            return ModelsStatus()
        return ModelsStatus.from_raw(raw)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ServiceClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

"""HTTP persister posting rule lists to a save endpoint."""

import logging
from typing import Any

import httpx

from rulelist_core.persistence.persister import Persister
from rulelist_core.rules.errors import PersistFailure

logger = logging.getLogger(__name__)


class HttpPersister(Persister):
    """Async HTTP persister.

    POSTs the serialized list as JSON to ``save_url``. Only a 200 response
    counts as success; any other status or transport error is a failure.
    The current list is fetched with a GET on ``load_url``, which defaults
    to ``save_url``.

    Args:
        save_url: Absolute URL of the save endpoint.
        load_url: Absolute URL returning the saved list (defaults to save_url).
        api_key: Optional API key sent as ``X-API-Key``.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        save_url: str,
        load_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.save_url = save_url
        self.load_url = load_url or save_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Get request headers."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def save(self, payload: dict[str, Any]) -> bool:
        client = await self._get_client()
        try:
            response = await client.post(self.save_url, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to reach {self.save_url}: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"Save rejected by {self.save_url}: HTTP {response.status_code}")
            return False
        return True

    async def load(self) -> dict[str, Any] | None:
        """Fetch the saved list.

        Raises:
            PersistFailure: If the endpoint cannot be reached or does not
                answer with a JSON object.
        """
        client = await self._get_client()
        try:
            response = await client.get(self.load_url)
        except httpx.HTTPError as e:
            raise PersistFailure(f"Failed to reach {self.load_url}: {e}") from e

        if response.status_code != 200:
            raise PersistFailure(f"Failed to load rules from {self.load_url}: HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise PersistFailure(f"Invalid JSON from {self.load_url}") from e
        if not isinstance(payload, dict):
            raise PersistFailure(f"Unexpected payload from {self.load_url}")
        return payload

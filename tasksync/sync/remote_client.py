"""HTTP client for the remote key-document store.

Each collection is a single JSON document addressed by a ``type`` query
parameter. Saves replace the whole document.
"""

import asyncio
import logging
from typing import Any

import httpx

from ..models import Collection, Record, SaveResult

logger = logging.getLogger(__name__)


class RemoteStoreError(Exception):
    """Transport or server failure while talking to the remote store."""


class RemoteStoreClient:
    """Async client for the remote store service."""

    def __init__(
        self,
        api_url: str = "http://localhost:8888/api",
        timeout: float = 8.0,
        health_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the remote store client.

        Args:
            api_url: Full URL of the store endpoint.
            timeout: Request timeout in seconds for fetch and save.
            health_timeout: Upper bound in seconds for the health probe.
            transport: Optional httpx transport (used to run against an
                in-process app).
        """
        self.api_url = api_url
        self.timeout = timeout
        self.health_timeout = health_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def health_check(self) -> bool:
        """Probe the store's health endpoint.

        Returns:
            True if the store answered healthy within ``health_timeout``,
            False on any error, timeout or unexpected response.
        """
        try:
            client = await self._get_client()
            response = await asyncio.wait_for(
                client.get(
                    self.api_url,
                    params={"type": "health"},
                    timeout=self.health_timeout,
                ),
                timeout=self.health_timeout,
            )
            if response.status_code != 200:
                logger.debug(f"Health check returned HTTP {response.status_code}")
                return False
            return response.json().get("status") == "ok"
        except Exception as e:
            logger.debug(f"Health check failed: {e}")
            return False

    async def _request(self, method: str, collection: Collection, body: Any = None) -> Any:
        """Send a request for ``collection`` and decode the JSON response.

        Raises:
            RemoteStoreError: On connection errors, timeouts, non-200
                responses or undecodable bodies.
        """
        client = await self._get_client()
        params = {"type": collection.value}

        try:
            if method == "GET":
                response = await client.get(self.api_url, params=params)
            else:
                response = await client.post(self.api_url, params=params, json=body)
        except httpx.TimeoutException as e:
            raise RemoteStoreError(f"Request timeout ({method} {collection.value})") from e
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"Connection failed ({method} {collection.value}): {e}") from e

        if response.status_code != 200:
            raise RemoteStoreError(
                f"HTTP {response.status_code} ({method} {collection.value}): {response.text}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(f"Invalid JSON from store ({collection.value})") from e

    async def fetch(self, collection: Collection) -> list[Record]:
        """Fetch every record of a collection.

        Args:
            collection: Collection to read.

        Returns:
            The stored records; an empty list when nothing is stored yet.
        """
        data = await self._request("GET", collection)
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteStoreError(
                f"Expected a list for {collection.value}, got {type(data).__name__}"
            )
        logger.debug(f"Fetched {len(data)} {collection.value}")
        return data

    async def save(self, collection: Collection, records: list[Record]) -> SaveResult:
        """Replace a collection wholesale.

        Args:
            collection: Collection to overwrite.
            records: Full new content.

        Returns:
            SaveResult with the store's acknowledgement.
        """
        data = await self._request("POST", collection, records)
        result = SaveResult.from_dict(data if isinstance(data, dict) else {})
        logger.debug(f"Saved {collection.value}: success={result.success} count={result.count}")
        return result

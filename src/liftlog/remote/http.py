"""HTTP client for the reference remote store server."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from urllib.parse import quote

import httpx

from ..errors import RemoteReadFailed, RemoteWriteFailed
from .base import RecordFilter

logger = logging.getLogger(__name__)


class HttpRemoteStore:
    """Remote store reached over HTTP (see ``liftlog.web``).

    Transport errors and non-2xx responses surface as
    :class:`RemoteWriteFailed` / :class:`RemoteReadFailed`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        poll_interval: float = 5.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server base URL (e.g., "http://127.0.0.1:8000")
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use ASGITransport)
            poll_interval: Seconds between polls when subscribing
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._poll_interval = poll_interval

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    @staticmethod
    def _docs_url(path: str, doc_id: str | None = None) -> str:
        url = f"/collections/{quote(path.strip('/'))}/docs"
        if doc_id is not None:
            url += f"/{quote(doc_id, safe='')}"
        return url

    async def upsert(self, path: str, doc_id: str, data: dict) -> None:
        await self._write("PUT", self._docs_url(path, doc_id), data, expected=(200, 201))

    async def add(self, path: str, data: dict) -> str:
        url = self._docs_url(path)
        response = await self._write("POST", url, data, expected=(201,))
        try:
            return response.json()["id"]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteWriteFailed(
                f"POST {url} returned an unexpected body: {response.text}",
                response.status_code,
            ) from e

    async def delete(self, path: str, doc_id: str) -> None:
        await self._write("DELETE", self._docs_url(path, doc_id), None, expected=(200, 204))

    async def read_all(self, path: str) -> list[dict]:
        return await self._read(self._docs_url(path), {})

    async def read_recent(self, path: str, order_field: str, limit: int) -> list[dict]:
        if limit <= 0:
            return []
        return await self._read(
            self._docs_url(path), {"order_by": order_field, "limit": limit}
        )

    async def subscribe(
        self, path: str, filter: RecordFilter | None = None
    ) -> AsyncIterator[dict]:
        """Poll the collection and yield documents that appear or change."""
        seen: dict[str, str] = {}
        while True:
            try:
                records = await self.read_all(path)
            except RemoteReadFailed as e:
                logger.warning("Subscription poll of %s failed: %s", path, e)
                await asyncio.sleep(self._poll_interval)
                continue

            current = {}
            for record in records:
                fingerprint = json.dumps(record, sort_keys=True)
                current[record["id"]] = fingerprint
                if seen.get(record["id"]) != fingerprint:
                    if filter is None or filter(record):
                        yield record
            for doc_id in seen.keys() - current.keys():
                yield {"id": doc_id, "deleted": True}

            seen = current
            await asyncio.sleep(self._poll_interval)

    async def _write(
        self, method: str, url: str, data: dict | None, expected: tuple[int, ...]
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=data)
        except httpx.HTTPError as e:
            logger.warning("Remote write %s %s failed: %s", method, url, e)
            raise RemoteWriteFailed(f"{method} {url} failed: {e}") from e

        if response.status_code not in expected:
            raise RemoteWriteFailed(
                f"{method} {url} returned {response.status_code}: {response.text}",
                response.status_code,
            )
        return response

    async def _read(self, url: str, params: dict) -> list[dict]:
        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("Remote read %s failed: %s", url, e)
            raise RemoteReadFailed(f"GET {url} failed: {e}") from e

        if response.status_code != 200:
            raise RemoteReadFailed(
                f"GET {url} returned {response.status_code}: {response.text}",
                response.status_code,
            )
        try:
            docs = response.json()["docs"]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteReadFailed(
                f"GET {url} returned an unexpected body: {response.text}",
                response.status_code,
            ) from e
        if not isinstance(docs, list):
            raise RemoteReadFailed(f"GET {url} returned non-list docs", response.status_code)
        return docs

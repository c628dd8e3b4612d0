"""Async client for the hospital records API.
One ResourceClient per collection endpoint (patients, doctors, appointments).
"""
from __future__ import annotations
import logging
import os
import httpx
from dotenv import load_dotenv

load_dotenv()

_BASE_URL = os.getenv("HOSPITAL_API_BASE_URL", "http://localhost:8080/api")
_TIMEOUT = float(os.getenv("HOSPITAL_API_TIMEOUT", "15"))

logger = logging.getLogger(__name__)


class ResourceClient:
    """Thin GET/POST/PUT/DELETE wrapper around one collection endpoint.

    Errors are not handled here: non-2xx responses raise httpx.HTTPStatusError
    and network failures raise httpx.TransportError.
    """

    def __init__(self, collection: str, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or _BASE_URL).rstrip("/")
        self.collection = collection.strip("/")
        self.timeout = timeout if timeout is not None else _TIMEOUT

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.collection}"

    def _item_url(self, item_id) -> str:
        return f"{self.url}/{item_id}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(http2=True, timeout=self.timeout, headers={"Accept": "application/json"})

    @staticmethod
    def _body(resp: httpx.Response) -> dict:
        # DELETE and some PUT handlers answer 204 with no body
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    async def list(self) -> list[dict]:
        """Return the whole collection in server order."""
        async with self._client() as client:
            resp = await client.get(self.url)
            resp.raise_for_status()
            payload = resp.json()
        if not isinstance(payload, list):
            raise ValueError(f"expected a JSON array from {self.url}, got {type(payload).__name__}")
        logger.debug("GET %s -> %d records", self.url, len(payload))
        return payload

    async def create(self, payload: dict) -> dict:
        async with self._client() as client:
            resp = await client.post(self.url, json=payload)
            resp.raise_for_status()
            return self._body(resp)

    async def update(self, item_id, payload: dict) -> dict:
        async with self._client() as client:
            resp = await client.put(self._item_url(item_id), json=payload)
            resp.raise_for_status()
            return self._body(resp)

    async def delete(self, item_id) -> None:
        async with self._client() as client:
            resp = await client.delete(self._item_url(item_id))
            resp.raise_for_status()

"""
Async HTTP transport shared by the domain adapters.

One attempt per call: no retry, no backoff and no timeout. Failures are logged
here and re-raised as TransportError for the caller to handle.
"""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from railops.config import get_api_base
from railops.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


def _jsonable(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(by_alias=True, mode="json", exclude_none=True)
    if isinstance(body, (list, tuple)):
        return [_jsonable(b) for b in body]
    if isinstance(body, dict):
        return {k: _jsonable(v) for k, v in body.items()}
    return body


class Transport:
    """Issues JSON requests against a base URL.

    A fresh ``httpx.AsyncClient`` is opened per call so the transport can be
    driven from independent event loops. Pass ``transport`` to route requests
    through an in-process ASGI app or a mock handler.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict] = None,
    ):
        self.base_url = (base_url or get_api_base()).rstrip("/")
        self._transport = transport
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}

    def url(self, path: str) -> str:
        clean = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{clean}"

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        url = self.url(path)
        merged = {**self._headers, **(headers or {})}
        content = json.dumps(_jsonable(body)) if body is not None else None
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.request(method, url, content=content, params=params, headers=merged)
        except httpx.HTTPError as e:
            logger.error("API request failed for %s %s: %s", method, url, e)
            raise TransportError(f"Network error for {method} {url}: {e}") from e

        if not response.is_success:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            logger.error("API request failed for %s %s: HTTP %s", method, url, response.status_code)
            raise TransportError(f"HTTP error! status: {response.status_code}", response.status_code, payload)

        try:
            return response.json()
        except ValueError as e:
            logger.error("API response for %s %s is not JSON", method, url)
            raise TransportError(f"Invalid JSON from {url}", response.status_code) from e

    async def get(self, path: str, params: Optional[dict] = None, headers: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(self, path: str, body: Any = None, headers: Optional[dict] = None) -> Any:
        return await self.request("POST", path, body=body, headers=headers)

    async def put(self, path: str, body: Any = None, headers: Optional[dict] = None) -> Any:
        return await self.request("PUT", path, body=body, headers=headers)

    async def delete(self, path: str, headers: Optional[dict] = None) -> Any:
        return await self.request("DELETE", path, headers=headers)

"""Location source polling a JSON position feed over HTTP."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

import aiohttp

from pysitaware.exceptions import SitAwareTransportError
from pysitaware.models.position import AssetPosition
from pysitaware.sources.base import LocationSource, parse_positions

_logger = logging.getLogger(__name__)

USER_AGENT = "pysitaware"


class HttpLocationSource(LocationSource):
    """Polls *url* every ``poll_interval_s`` seconds and yields the positions it returns.

    The feed may answer with a list of position objects or with
    ``{"positions": [...]}``.  Failed polls are logged and retried on the
    next interval; they never end the stream.
    """

    def __init__(
        self,
        name: str,
        url: str,
        *,
        poll_interval_s: float = 60.0,
        default_type: str | None = None,
        headers: Mapping[str, str] | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        super().__init__(name)
        self._url = url
        self._poll_interval_s = poll_interval_s
        self._default_type = default_type
        self._headers = {"accept": "application/json", "user-agent": USER_AGENT, **(headers or {})}
        self._external_session = session is not None
        self._http = session
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)

    @property
    def url(self) -> str:
        return self._url

    async def on_start(self) -> None:
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=self._timeout)

    async def on_stop(self) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
            self._http = None

    async def fetch(self) -> Any:
        """GET the feed and return the decoded JSON body."""
        if self._http is None:
            raise SitAwareTransportError(f"Source {self.name} not started", url=self._url)

        _logger.debug("GET %s", self._url)
        try:
            async with self._http.get(self._url, headers=self._headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise SitAwareTransportError(
                        f"HTTP {resp.status} from {self._url}: {text[:200]}",
                        status_code=resp.status,
                        url=self._url,
                    )
        except SitAwareTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise SitAwareTransportError(f"Request to {self._url} failed: {exc}", url=self._url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise SitAwareTransportError(f"Invalid JSON from {self._url}: {text[:200]}", url=self._url) from exc

    async def poll_once(self) -> list[AssetPosition]:
        return parse_positions(await self.fetch(), default_type=self._default_type)

    async def positions(self) -> AsyncIterator[AssetPosition]:
        while True:
            try:
                batch = await self.poll_once()
            except SitAwareTransportError:
                _logger.warning("Polling %s failed", self.name, exc_info=True)
                batch = []
            for position in batch:
                yield position
            await asyncio.sleep(self._poll_interval_s)

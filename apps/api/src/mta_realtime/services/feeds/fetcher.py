"""GTFS-RT feed fetcher."""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Optional

import httpx

from mta_realtime.logging import get_logger
from mta_realtime.services.feeds.errors import FeedFetchError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mta_realtime.services.feeds.registry import FeedSource

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


class FeedFetcher:
    """Downloads raw GTFS-RT protobuf payloads.

    A single attempt is made per call. The consumer's polling cadence is the
    retry mechanism.
    """

    def __init__(
        self,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self.headers = dict(headers or {})

    async def fetch(self, source: FeedSource) -> bytes:
        """Download the payload for ``source``.

        Raises:
            FeedFetchError: On connection errors, timeouts, non-success
                statuses or an empty body.
        """
        logger.info(
            "Fetching GTFS-RT feed",
            domain=source.domain.value,
            feed_key=source.key,
            url=source.url,
        )
        try:
            # httpx timeouts apply per phase; this bounds the whole request
            data = await asyncio.wait_for(self._download(source), timeout=self.timeout_sec)
        except (httpx.HTTPStatusError, httpx.RequestError, asyncio.TimeoutError) as exc:
            logger.warning(
                "GTFS-RT fetch failed",
                domain=source.domain.value,
                feed_key=source.key,
                error=str(exc) or type(exc).__name__,
            )
            raise FeedFetchError(source, exc) from exc

        if not data:
            logger.warning(
                "GTFS-RT feed returned empty body",
                domain=source.domain.value,
                feed_key=source.key,
            )
            raise FeedFetchError(source, ValueError("Empty response body"))

        logger.info(
            "GTFS-RT feed downloaded",
            domain=source.domain.value,
            feed_key=source.key,
            size_bytes=len(data),
        )
        return data

    async def _download(self, source: FeedSource) -> bytes:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_sec),
            follow_redirects=True,
        ) as client:
            response = await client.get(source.url, headers=self.headers)
            raise_result = response.raise_for_status()
            if inspect.isawaitable(raise_result):
                await raise_result
            return response.content

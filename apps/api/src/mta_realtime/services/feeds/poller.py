"""Periodic feed polling sessions."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from mta_realtime.logging import get_logger

if TYPE_CHECKING:
    from mta_realtime.models.feed import FeedMessage
    from mta_realtime.services.feeds.registry import FeedDomain
    from mta_realtime.services.feeds.service import FeedRequest, FeedService

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_SEC = 30.0


class FeedPoller:
    """Re-requests one feed at a fixed interval until stopped.

    A poll runs regardless of how the previous one ended. The last
    successfully decoded message is kept so a failed poll does not blank
    the consumer's view.

    Usage:
        poller = FeedPoller(service, FeedDomain.SUBWAY, "l")
        await poller.start()   # launches background task
        await poller.stop()    # cancels it; no fetch is issued afterwards
    """

    def __init__(
        self,
        service: FeedService,
        domain: FeedDomain,
        key: Optional[str] = None,
        interval_sec: float = DEFAULT_POLL_INTERVAL_SEC,
        stale_threshold_sec: Optional[int] = None,
    ) -> None:
        self._service = service
        self.domain = domain
        self.key = key
        self._interval = interval_sec
        self._stale_threshold = stale_threshold_sec

        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._poll_count = 0
        self._last_poll_at: datetime | None = None
        self._last_request: FeedRequest | None = None
        self._latest: FeedMessage | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def poll_count(self) -> int:
        return self._poll_count

    @property
    def last_poll_at(self) -> datetime | None:
        return self._last_poll_at

    @property
    def latest(self) -> FeedMessage | None:
        return self._latest

    @property
    def last_request(self) -> FeedRequest | None:
        return self._last_request

    async def start(self) -> None:
        """Start the background polling loop."""
        if self._running:
            logger.warning(
                "Poller already running, ignoring start request",
                domain=self.domain.value,
                feed_key=self.key,
            )
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "Feed poller started",
            domain=self.domain.value,
            feed_key=self.key,
            poll_interval_sec=self._interval,
        )

    async def stop(self) -> None:
        """Stop the loop and wait for it, cancelling any in-flight fetch."""
        if not self._running:
            return

        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Feed poller stopped", domain=self.domain.value, feed_key=self.key)

    async def poll_once(self) -> FeedRequest:
        """Request the feed once and record the outcome."""
        self._poll_count += 1
        self._last_poll_at = datetime.now(timezone.utc)

        request = await self._service.execute(self.domain, self.key)
        self._last_request = request
        if request.message is not None:
            self._latest = request.message
        return request

    def is_stale(self, now: datetime | None = None) -> bool:
        """Whether the latest message is older than the staleness threshold."""
        if self._latest is None or self._stale_threshold is None:
            return False
        if not self._latest.generated_at:
            return False
        now = now or datetime.now(timezone.utc)
        age_sec = now.timestamp() - self._latest.generated_at
        return age_sec > self._stale_threshold

    def get_status(self) -> dict[str, Any]:
        last = self._last_request
        return {
            "domain": self.domain.value,
            "key": self.key,
            "running": self._running,
            "poll_count": self._poll_count,
            "last_poll_at": self._last_poll_at.isoformat() if self._last_poll_at else None,
            "poll_interval_sec": self._interval,
            "last_state": last.state.value if last else None,
            "last_error": str(last.error) if last and last.error else None,
            "has_data": self._latest is not None,
            "stale": self.is_stale(),
        }

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error(
                    "Poll failed unexpectedly",
                    domain=self.domain.value,
                    feed_key=self.key,
                    exc_info=exc,
                )

            try:
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break


class PollerManager:
    """Owns one poller per (domain, feed key) session."""

    def __init__(
        self,
        service: FeedService,
        interval_sec: float = DEFAULT_POLL_INTERVAL_SEC,
        stale_threshold_sec: Optional[int] = None,
    ) -> None:
        self._service = service
        self._interval = interval_sec
        self._stale_threshold = stale_threshold_sec
        self._pollers: dict[tuple[FeedDomain, str], FeedPoller] = {}

    def get(self, domain: FeedDomain, key: Optional[str] = None) -> FeedPoller | None:
        source = self._service.catalog.resolve(domain, key)
        return self._pollers.get((domain, source.key))

    async def start(self, domain: FeedDomain, key: Optional[str] = None) -> FeedPoller:
        """Start (or return the running) session for a feed.

        Raises:
            InvalidFeedKeyError: If the key is not registered.
        """
        source = self._service.catalog.resolve(domain, key)
        poller = self._pollers.get((domain, source.key))
        if poller is None:
            poller = FeedPoller(
                self._service,
                domain,
                source.key,
                interval_sec=self._interval,
                stale_threshold_sec=self._stale_threshold,
            )
            self._pollers[(domain, source.key)] = poller
        await poller.start()
        return poller

    async def stop(self, domain: FeedDomain, key: Optional[str] = None) -> FeedPoller | None:
        source = self._service.catalog.resolve(domain, key)
        poller = self._pollers.pop((domain, source.key), None)
        if poller is not None:
            await poller.stop()
        return poller

    async def stop_all(self) -> None:
        pollers = list(self._pollers.values())
        self._pollers.clear()
        for poller in pollers:
            await poller.stop()

    def sessions(self) -> list[dict[str, Any]]:
        return [poller.get_status() for poller in self._pollers.values()]

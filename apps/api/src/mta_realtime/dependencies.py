"""Process-wide service instances for the FastAPI app."""

from __future__ import annotations

from mta_realtime.config import get_settings
from mta_realtime.services.feeds.fetcher import FeedFetcher
from mta_realtime.services.feeds.poller import PollerManager
from mta_realtime.services.feeds.registry import build_mta_catalog
from mta_realtime.services.feeds.service import FeedService
from mta_realtime.services.stops.store import StopIndexStore

_feed_service: FeedService | None = None
_stop_store: StopIndexStore | None = None
_poller_manager: PollerManager | None = None


def get_feed_service() -> FeedService:
    """Get or create the feed service built from settings."""
    global _feed_service
    if _feed_service is None:
        settings = get_settings()
        _feed_service = FeedService(
            catalog=build_mta_catalog(settings.mta_feed_base_url),
            fetcher=FeedFetcher(
                timeout_sec=settings.feed_fetch_timeout_sec,
                headers=settings.feed_request_headers,
            ),
        )
    return _feed_service


def get_stop_store() -> StopIndexStore:
    """Get or create the stop index store."""
    global _stop_store
    if _stop_store is None:
        settings = get_settings()
        _stop_store = StopIndexStore(
            settings.stops_source,
            timeout_sec=settings.feed_fetch_timeout_sec,
        )
    return _stop_store


def get_poller_manager() -> PollerManager:
    """Get or create the polling session manager."""
    global _poller_manager
    if _poller_manager is None:
        settings = get_settings()
        _poller_manager = PollerManager(
            get_feed_service(),
            interval_sec=settings.feed_poll_interval_sec,
            stale_threshold_sec=settings.stale_feed_threshold_sec,
        )
    return _poller_manager


def reset_dependencies() -> None:
    """Drop all singletons (for testing)."""
    global _feed_service, _stop_store, _poller_manager
    _feed_service = None
    _stop_store = None
    _poller_manager = None

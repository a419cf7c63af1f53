"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from mta_realtime.dependencies import (
    get_feed_service,
    get_poller_manager,
    get_stop_store,
    reset_dependencies,
)
from mta_realtime.main import app
from mta_realtime.models.stops import StopIndex
from mta_realtime.services.feeds.poller import PollerManager
from mta_realtime.services.feeds.registry import build_mta_catalog
from mta_realtime.services.feeds.service import FeedService
from mta_realtime.services.stops.loader import StopReferenceLoader
from mta_realtime.services.stops.store import StopIndexStore

from .fixtures.pipeline_fixture import BASE_URL, STOPS_TXT, FakeFetcher


@pytest.fixture
def catalog() -> Any:
    return build_mta_catalog(BASE_URL)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def feed_service(catalog: Any, fake_fetcher: FakeFetcher) -> FeedService:
    return FeedService(catalog=catalog, fetcher=fake_fetcher)  # type: ignore[arg-type]


@pytest.fixture
def stop_index() -> StopIndex:
    return StopReferenceLoader.load(STOPS_TXT, source="test")


@pytest.fixture
def stop_store(stop_index: StopIndex) -> StopIndexStore:
    store = StopIndexStore("stops.txt")
    store.publish(stop_index)
    return store


@pytest.fixture
def poller_manager(feed_service: FeedService) -> PollerManager:
    return PollerManager(feed_service, interval_sec=0.01)


@pytest.fixture
async def client(
    feed_service: FeedService,
    stop_store: StopIndexStore,
    poller_manager: PollerManager,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with the feed pipeline wired to a fake fetcher."""
    app.dependency_overrides[get_feed_service] = lambda: feed_service
    app.dependency_overrides[get_stop_store] = lambda: stop_store
    app.dependency_overrides[get_poller_manager] = lambda: poller_manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await poller_manager.stop_all()
    app.dependency_overrides.clear()
    reset_dependencies()

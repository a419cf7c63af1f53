"""GTFS-RT feed acquisition pipeline for MTA data."""

from mta_realtime.services.feeds.decoder import FeedDecoder
from mta_realtime.services.feeds.errors import (
    FailureKind,
    FeedDecodeError,
    FeedError,
    FeedFetchError,
    InvalidFeedKeyError,
)
from mta_realtime.services.feeds.fetcher import FeedFetcher
from mta_realtime.services.feeds.poller import FeedPoller, PollerManager
from mta_realtime.services.feeds.registry import (
    FeedCatalog,
    FeedDomain,
    FeedRegistry,
    FeedSource,
    build_mta_catalog,
)
from mta_realtime.services.feeds.service import FeedRequest, FeedService, RequestState

__all__ = [
    "FailureKind",
    "FeedCatalog",
    "FeedDecodeError",
    "FeedDecoder",
    "FeedDomain",
    "FeedError",
    "FeedFetchError",
    "FeedFetcher",
    "FeedPoller",
    "FeedRegistry",
    "FeedRequest",
    "FeedService",
    "FeedSource",
    "InvalidFeedKeyError",
    "PollerManager",
    "RequestState",
    "build_mta_catalog",
]

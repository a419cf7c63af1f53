"""Feed pipeline error taxonomy."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from mta_realtime.services.feeds.registry import FeedSource


class FailureKind(str, Enum):
    """Terminal failure kinds of a feed request."""

    INVALID_FEED_KEY = "invalid_feed_key"
    FETCH_FAILED = "fetch_failed"
    DECODE_FAILED = "decode_failed"


class FeedError(Exception):
    """Base class for errors that end a single feed request."""

    kind: FailureKind


class InvalidFeedKeyError(FeedError):
    """Raised when a feed key is not in the registry."""

    kind = FailureKind.INVALID_FEED_KEY

    def __init__(self, domain: str, key: str) -> None:
        self.domain = domain
        self.key = key
        super().__init__(f"Invalid feed specified: {domain}/{key}")


class FeedFetchError(FeedError):
    """Raised when the upstream feed cannot be retrieved."""

    kind = FailureKind.FETCH_FAILED

    def __init__(self, source: FeedSource, cause: Optional[BaseException] = None) -> None:
        self.source = source
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to fetch {source.domain.value}/{source.key} feed{detail}")


class FeedDecodeError(FeedError):
    """Raised when a payload is not a valid GTFS-RT FeedMessage."""

    kind = FailureKind.DECODE_FAILED

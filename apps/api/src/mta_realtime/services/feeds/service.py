"""Feed service: resolve, fetch and decode one feed per request."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from mta_realtime.logging import get_logger
from mta_realtime.services.feeds.decoder import FeedDecoder
from mta_realtime.services.feeds.errors import FailureKind, FeedError

if TYPE_CHECKING:
    from mta_realtime.models.feed import FeedMessage
    from mta_realtime.services.feeds.fetcher import FeedFetcher
    from mta_realtime.services.feeds.registry import FeedCatalog, FeedDomain, FeedSource

logger = get_logger(__name__)


class RequestState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    DECODING = "decoding"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FeedRequest:
    """Lifecycle of a single feed request.

    Ends in ``DONE`` with a message or ``FAILED`` with the error that
    stopped it. Nothing is retried within a request.
    """

    domain: FeedDomain
    key: Optional[str]
    request_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: RequestState = RequestState.IDLE
    source: Optional[FeedSource] = None
    message: Optional[FeedMessage] = None
    error: Optional[FeedError] = None
    duration_ms: int = 0

    @property
    def failure(self) -> Optional[FailureKind]:
        return self.error.kind if self.error is not None else None

    @property
    def succeeded(self) -> bool:
        return self.state is RequestState.DONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "domain": self.domain.value,
            "key": self.source.key if self.source else self.key,
            "state": self.state.value,
            "failure": self.failure.value if self.failure else None,
            "error": str(self.error) if self.error else None,
            "entity_count": self.message.entity_count if self.message else 0,
            "duration_ms": self.duration_ms,
        }


class FeedService:
    """Orchestrates registry lookup, fetch and decode.

    Stateless across requests; every call fetches and decodes afresh.
    """

    def __init__(
        self,
        catalog: FeedCatalog,
        fetcher: FeedFetcher,
        decoder: Optional[FeedDecoder] = None,
    ) -> None:
        self._catalog = catalog
        self._fetcher = fetcher
        self._decoder = decoder or FeedDecoder()

    @property
    def catalog(self) -> FeedCatalog:
        return self._catalog

    async def execute(self, domain: FeedDomain, key: Optional[str] = None) -> FeedRequest:
        """Run one request to a terminal state without raising feed errors."""
        request = FeedRequest(domain=domain, key=key)
        started = time.monotonic()

        try:
            request.state = RequestState.RESOLVING
            request.source = self._catalog.resolve(domain, key)

            request.state = RequestState.FETCHING
            data = await self._fetcher.fetch(request.source)

            request.state = RequestState.DECODING
            request.message = self._decoder.decode(data)

            request.state = RequestState.DONE
        except FeedError as exc:
            request.error = exc
            logger.error(
                "Feed request failed",
                request_id=request.request_id,
                domain=domain.value,
                feed_key=key,
                failed_in=request.state.value,
                failure=exc.kind.value,
                error=str(exc),
            )
            request.state = RequestState.FAILED
        finally:
            request.duration_ms = int((time.monotonic() - started) * 1000)

        if request.message is not None:
            logger.info(
                "GTFS-RT feed decoded",
                request_id=request.request_id,
                domain=domain.value,
                feed_key=request.source.key if request.source else key,
                entity_count=request.message.entity_count,
                feed_timestamp=request.message.generated_at,
                gtfs_rt_version=request.message.schema_version,
                duration_ms=request.duration_ms,
            )
        return request

    async def get_feed(self, domain: FeedDomain, key: Optional[str] = None) -> FeedMessage:
        """Return the decoded feed or raise the error that ended the request.

        Raises:
            InvalidFeedKeyError: Unknown key, no fetch attempted.
            FeedFetchError: Upstream unreachable or non-success response.
            FeedDecodeError: Payload is not a valid feed.
        """
        request = await self.execute(domain, key)
        if request.error is not None:
            raise request.error
        assert request.message is not None
        return request.message

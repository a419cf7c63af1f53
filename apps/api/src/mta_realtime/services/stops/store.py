"""Process-wide holder of the current stop index."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Any, Optional

from mta_realtime.logging import get_logger
from mta_realtime.models.stops import StopIndex
from mta_realtime.services.stops.loader import (
    DEFAULT_TIMEOUT_SEC,
    ReferenceLoadError,
    StopReferenceLoader,
)

logger = get_logger(__name__)


class StopIndexStore:
    """Publishes a complete StopIndex to concurrent readers.

    A reload builds a new index off to the side and publishes it with a
    single reference assignment, so readers see either the previous index
    or the new one. Concurrent reload requests share the one in flight.
    """

    def __init__(self, source: str, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> None:
        self.source = source
        self._timeout_sec = timeout_sec
        self._index: Optional[StopIndex] = None
        self._last_error: Optional[str] = None
        self._reload_task: asyncio.Task[StopIndex] | None = None

    @property
    def current(self) -> Optional[StopIndex]:
        """The published index, or ``None`` if nothing has loaded yet."""
        return self._index

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def publish(self, index: StopIndex) -> None:
        self._index = index
        self._last_error = None

    async def reload(self) -> StopIndex:
        """Load the stop table and publish it.

        On failure the previously published index stays in place.

        Raises:
            ReferenceLoadError: If the table cannot be loaded.
        """
        if self._reload_task is None or self._reload_task.done():
            self._reload_task = asyncio.create_task(self._load())
        return await asyncio.shield(self._reload_task)

    async def try_reload(self) -> Optional[StopIndex]:
        """Reload, logging instead of raising when the table is unavailable."""
        try:
            return await self.reload()
        except ReferenceLoadError as exc:
            logger.warning(
                "Stop reference table unavailable, continuing without enrichment",
                source=self.source,
                error=str(exc),
            )
            return None

    async def close(self) -> None:
        """Cancel a reload still in flight; the published index is kept."""
        task = self._reload_task
        self._reload_task = None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError, ReferenceLoadError):
                await task

    async def _load(self) -> StopIndex:
        try:
            index = await StopReferenceLoader.load_source(self.source, timeout_sec=self._timeout_sec)
        except ReferenceLoadError as exc:
            self._last_error = str(exc)
            raise
        self.publish(index)
        return index

    def get_status(self) -> dict[str, Any]:
        index = self._index
        return {
            "source": self.source,
            "loaded": index is not None,
            "stop_count": len(index) if index is not None else 0,
            "rejected_rows": index.rejected_rows if index is not None else 0,
            "loaded_at": index.loaded_at.isoformat() if index is not None else None,
            "last_error": self._last_error,
        }

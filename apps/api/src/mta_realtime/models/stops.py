"""Static stop reference data."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StopReferenceEntry(BaseModel):
    """Display metadata for one physical stop."""

    model_config = ConfigDict(frozen=True)

    stop_id: str
    name: str
    latitude: float
    longitude: float


class StopIndex(Mapping[str, StopReferenceEntry]):
    """Read-only exact-match index of stop reference entries by stop id.

    Built once by the loader and never modified afterwards; a reload builds
    a new index instead.
    """

    def __init__(
        self,
        entries: Mapping[str, StopReferenceEntry],
        source: str = "",
        rejected_rows: int = 0,
        loaded_at: Optional[datetime] = None,
    ) -> None:
        self._entries = MappingProxyType(dict(entries))
        self.source = source
        self.rejected_rows = rejected_rows
        self.loaded_at = loaded_at or datetime.now(timezone.utc)

    def __getitem__(self, stop_id: str) -> StopReferenceEntry:
        return self._entries[stop_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"StopIndex(source={self.source!r}, stops={len(self)})"

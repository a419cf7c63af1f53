"""Stop reference table loader (stops.txt style CSV)."""

from __future__ import annotations

import asyncio
import csv
import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx

from mta_realtime.logging import get_logger
from mta_realtime.models.stops import StopIndex, StopReferenceEntry

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger(__name__)

# stop_id, stop_name, stop_lat, stop_lon; trailing columns are ignored
MIN_FIELDS = 4
DEFAULT_TIMEOUT_SEC = 10.0


class ReferenceLoadError(Exception):
    """Raised when the stop table is missing or unusable as a whole."""


@dataclass(frozen=True)
class RowOutcome:
    """Result of parsing one data row: an entry or the reason it was skipped."""

    line_number: int
    entry: Optional[StopReferenceEntry] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.entry is not None


def _parse_coordinate(raw: str) -> Optional[float]:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_row(fields: list[str], line_number: int) -> RowOutcome:
    """Parse one CSV row into a stop entry.

    Rows with too few fields or coordinates that are not finite numbers are
    rejected; no placeholder coordinates are ever stored.
    """
    if len(fields) < MIN_FIELDS:
        return RowOutcome(line_number, reason=f"expected {MIN_FIELDS} fields, got {len(fields)}")

    stop_id, name, lat_str, lon_str = (f.strip() for f in fields[:MIN_FIELDS])
    if not stop_id:
        return RowOutcome(line_number, reason="missing stop_id")

    lat = _parse_coordinate(lat_str)
    lon = _parse_coordinate(lon_str)
    if lat is None or lon is None:
        return RowOutcome(
            line_number,
            reason=f"invalid lat/lon for stop_id={stop_id}: lat={lat_str!r}, lon={lon_str!r}",
        )

    return RowOutcome(
        line_number,
        entry=StopReferenceEntry(stop_id=stop_id, name=name, latitude=lat, longitude=lon),
    )


class StopReferenceLoader:
    """Parses the static stop table into a StopIndex."""

    @staticmethod
    def iter_rows(text: str) -> Iterator[RowOutcome]:
        """Yield one outcome per non-blank data row; the header is skipped.

        Raises:
            ReferenceLoadError: If the table has no header row.
        """
        reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
        header = next(reader, None)
        if not header:
            msg = "Stop table is empty"
            raise ReferenceLoadError(msg)

        for fields in reader:
            if not fields or not any(f.strip() for f in fields):
                continue
            yield parse_row(fields, reader.line_num)

    @classmethod
    def load(cls, text: str, source: str = "<memory>") -> StopIndex:
        """Build an index from table text.

        Later rows with a duplicate stop id replace earlier ones.

        Raises:
            ReferenceLoadError: If the table has no header row or is not
                well-formed CSV.
        """
        entries: dict[str, StopReferenceEntry] = {}
        rejected = 0
        try:
            for outcome in cls.iter_rows(text):
                if outcome.entry is None:
                    rejected += 1
                    logger.debug(
                        "Skipping stop row",
                        source=source,
                        line=outcome.line_number,
                        reason=outcome.reason,
                    )
                    continue
                entries[outcome.entry.stop_id] = outcome.entry
        except csv.Error as exc:
            msg = f"Malformed stop table {source}: {exc}"
            raise ReferenceLoadError(msg) from exc

        index = StopIndex(entries, source=source, rejected_rows=rejected)
        logger.info(
            "Stop reference table loaded",
            source=source,
            stop_count=len(index),
            rejected_rows=rejected,
        )
        return index

    @classmethod
    def load_path(cls, path: str | Path) -> StopIndex:
        """Load the table from the local filesystem.

        Raises:
            ReferenceLoadError: If the file cannot be read or is not UTF-8.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Cannot read stop table {path}: {exc}"
            raise ReferenceLoadError(msg) from exc
        return cls.load(text, source=str(path))

    @classmethod
    async def load_url(cls, url: str, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> StopIndex:
        """Download and load the table from an HTTP(S) URL.

        Raises:
            ReferenceLoadError: On transport failure or non-success status.
        """
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout_sec),
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                text = response.text
        except (httpx.HTTPStatusError, httpx.RequestError) as exc:
            msg = f"Cannot download stop table {url}: {exc}"
            raise ReferenceLoadError(msg) from exc
        return cls.load(text, source=url)

    @classmethod
    async def load_source(cls, source: str, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> StopIndex:
        """Load from a URL or a local path depending on ``source``."""
        if source.startswith(("http://", "https://")):
            return await cls.load_url(source, timeout_sec=timeout_sec)
        # File read and CSV parse are blocking
        return await asyncio.to_thread(cls.load_path, source)

"""Join decoded feeds with static stop reference data."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from pydantic import computed_field

from mta_realtime.models.feed import FeedMessage, FeedModel, StopTimeEvent
from mta_realtime.models.stops import StopReferenceEntry

# Shown in place of stop name/coordinates when a stop is not in the index
STOP_PLACEHOLDER = "N/A"


class StopLookup(FeedModel):
    """Result of looking up one stop id; ``known`` is False when absent.

    The display fields carry the placeholder for unknown stops so consumers
    can render every row the same way.
    """

    stop_id: str
    known: bool
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @computed_field(alias="displayName")  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        return self.name if self.known and self.name else STOP_PLACEHOLDER

    @computed_field(alias="displayCoordinates")  # type: ignore[prop-decorator]
    @property
    def display_coordinates(self) -> str:
        if not self.known or self.latitude is None or self.longitude is None:
            return STOP_PLACEHOLDER
        return f"{self.latitude:.5f}, {self.longitude:.5f}"


class StopTimeRow(FeedModel):
    """One stop-time update flattened together with its trip and stop data."""

    entity_id: str
    trip_id: str
    route_id: str
    stop_id: str
    stop_known: bool
    stop_name: Optional[str] = None
    stop_latitude: Optional[float] = None
    stop_longitude: Optional[float] = None
    arrival_time: Optional[int] = None
    arrival_delay: Optional[int] = None
    departure_time: Optional[int] = None
    departure_delay: Optional[int] = None


class EnrichedFeed(FeedModel):
    feed: FeedMessage
    stops: dict[str, StopLookup]
    rows: tuple[StopTimeRow, ...] = ()
    enrichment_available: bool = True


def lookup_stop(stop_id: str, index: Optional[Mapping[str, StopReferenceEntry]]) -> StopLookup:
    entry = index.get(stop_id) if index is not None else None
    if entry is None:
        return StopLookup(stop_id=stop_id, known=False)
    return StopLookup(
        stop_id=stop_id,
        known=True,
        name=entry.name,
        latitude=entry.latitude,
        longitude=entry.longitude,
    )


def _event_time(event: Optional[StopTimeEvent]) -> Optional[int]:
    return event.time if event is not None else None


def _event_delay(event: Optional[StopTimeEvent]) -> Optional[int]:
    return event.delay if event is not None else None


def enrich(
    feed: FeedMessage,
    index: Optional[Mapping[str, StopReferenceEntry]],
) -> EnrichedFeed:
    """Attach stop metadata to every stop-time update in ``feed``.

    Neither the feed nor the index is modified. Stops missing from the index
    (or every stop, when no index is loaded) get an unknown lookup.
    """
    stops: dict[str, StopLookup] = {}
    rows: list[StopTimeRow] = []

    for entity in feed.entities:
        tu = entity.trip_update
        if tu is None:
            continue
        for stu in tu.stop_time_updates:
            lookup = stops.get(stu.stop_id)
            if lookup is None:
                lookup = lookup_stop(stu.stop_id, index)
                stops[stu.stop_id] = lookup
            rows.append(
                StopTimeRow(
                    entity_id=entity.id,
                    trip_id=tu.trip_id,
                    route_id=tu.route_id,
                    stop_id=stu.stop_id,
                    stop_known=lookup.known,
                    stop_name=lookup.name,
                    stop_latitude=lookup.latitude,
                    stop_longitude=lookup.longitude,
                    arrival_time=_event_time(stu.arrival),
                    arrival_delay=_event_delay(stu.arrival),
                    departure_time=_event_time(stu.departure),
                    departure_delay=_event_delay(stu.departure),
                )
            )

    return EnrichedFeed(
        feed=feed,
        stops=stops,
        rows=tuple(rows),
        enrichment_available=index is not None,
    )

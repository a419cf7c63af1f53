"""Canonical decoded GTFS-RT feed model.

Every optional sub-structure is ``None`` when the upstream payload did not
carry it. A delay of ``0`` or a position of ``(0.0, 0.0)`` is a real value
and is kept as such.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FeedModel(BaseModel):
    """Base for immutable feed records, serialized with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class StopTimeEvent(FeedModel):
    """Predicted arrival or departure at a stop."""

    time: Optional[int] = None
    delay: Optional[int] = None


class StopTimeUpdate(FeedModel):
    stop_id: str = ""
    arrival: Optional[StopTimeEvent] = None
    departure: Optional[StopTimeEvent] = None


class TripUpdate(FeedModel):
    """Stop-by-stop predictions for one trip, in upstream stop order."""

    trip_id: str = ""
    route_id: str = ""
    start_time: str = ""
    start_date: str = ""
    stop_time_updates: tuple[StopTimeUpdate, ...] = ()


class Position(FeedModel):
    latitude: float
    longitude: float


class VehiclePosition(FeedModel):
    current_status: Optional[str] = None
    timestamp: Optional[int] = None
    position: Optional[Position] = None
    stop_id: Optional[str] = None


class Entity(FeedModel):
    id: str
    trip_update: Optional[TripUpdate] = None
    vehicle: Optional[VehiclePosition] = None


class FeedMessage(FeedModel):
    """Root of one decoded feed fetch."""

    schema_version: str
    generated_at: int
    entities: tuple[Entity, ...] = ()

    @property
    def entity_count(self) -> int:
        return len(self.entities)

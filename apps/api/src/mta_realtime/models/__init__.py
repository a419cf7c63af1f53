"""Domain models for decoded feeds and stop reference data."""

from mta_realtime.models.feed import (
    Entity,
    FeedMessage,
    Position,
    StopTimeEvent,
    StopTimeUpdate,
    TripUpdate,
    VehiclePosition,
)
from mta_realtime.models.stops import StopIndex, StopReferenceEntry

__all__ = [
    "Entity",
    "FeedMessage",
    "Position",
    "StopIndex",
    "StopReferenceEntry",
    "StopTimeEvent",
    "StopTimeUpdate",
    "TripUpdate",
    "VehiclePosition",
]

"""GTFS-RT protobuf decode layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2  # type: ignore[import-untyped]
from pydantic import ValidationError

from mta_realtime.models.feed import (
    Entity,
    FeedMessage,
    Position,
    StopTimeEvent,
    StopTimeUpdate,
    TripUpdate,
    VehiclePosition,
)
from mta_realtime.services.feeds.errors import FeedDecodeError

if TYPE_CHECKING:
    from google.protobuf.message import Message

# Smallest encoding of a FeedMessage with its required header:
# header tag + length + gtfs_realtime_version tag + length.
MIN_FEED_BYTES = 4

VEHICLE_STOP_STATUS = {
    0: "INCOMING_AT",
    1: "STOPPED_AT",
    2: "IN_TRANSIT_TO",
}


def _optional(message: Message, field: str) -> Optional[Any]:
    """Return a scalar field only if it was present on the wire."""
    return getattr(message, field) if message.HasField(field) else None


class FeedDecoder:
    """Decodes raw protobuf bytes into the canonical FeedMessage model.

    Unknown fields and extensions are skipped. Optional sub-messages
    that were not encoded decode to ``None``.
    """

    @staticmethod
    def decode(data: bytes) -> FeedMessage:
        """Decode protobuf bytes into a FeedMessage.

        Raises:
            FeedDecodeError: If the payload is too short, cannot be parsed,
                lacks the required feed header, or carries field values
                that are not valid (such as non-UTF-8 strings).
        """
        if len(data) < MIN_FEED_BYTES:
            msg = f"Payload of {len(data)} bytes is shorter than a feed header"
            raise FeedDecodeError(msg)

        feed = gtfs_realtime_pb2.FeedMessage()
        try:
            feed.ParseFromString(data)
        except DecodeError as exc:
            msg = f"Failed to decode GTFS-RT protobuf: {exc}"
            raise FeedDecodeError(msg) from exc

        if not feed.IsInitialized():
            msg = "GTFS-RT payload is missing required fields: " + ", ".join(
                feed.FindInitializationErrors()
            )
            raise FeedDecodeError(msg)

        # Invalid UTF-8 in a string field surfaces here as a non-str value
        try:
            return FeedMessage(
                schema_version=feed.header.gtfs_realtime_version,
                generated_at=feed.header.timestamp,
                entities=tuple(FeedDecoder._entity(entity) for entity in feed.entity),
            )
        except (ValidationError, UnicodeDecodeError) as exc:
            msg = f"GTFS-RT payload has malformed field values: {exc}"
            raise FeedDecodeError(msg) from exc

    @staticmethod
    def _entity(entity: Any) -> Entity:
        return Entity(
            id=entity.id,
            trip_update=(
                FeedDecoder._trip_update(entity.trip_update)
                if entity.HasField("trip_update")
                else None
            ),
            vehicle=(
                FeedDecoder._vehicle(entity.vehicle) if entity.HasField("vehicle") else None
            ),
        )

    @staticmethod
    def _trip_update(tu: Any) -> TripUpdate:
        return TripUpdate(
            trip_id=tu.trip.trip_id,
            route_id=tu.trip.route_id,
            start_time=tu.trip.start_time,
            start_date=tu.trip.start_date,
            stop_time_updates=tuple(
                StopTimeUpdate(
                    stop_id=stu.stop_id,
                    arrival=FeedDecoder._event(stu, "arrival"),
                    departure=FeedDecoder._event(stu, "departure"),
                )
                for stu in tu.stop_time_update
            ),
        )

    @staticmethod
    def _event(stu: Any, field: str) -> Optional[StopTimeEvent]:
        if not stu.HasField(field):
            return None
        event = getattr(stu, field)
        return StopTimeEvent(time=_optional(event, "time"), delay=_optional(event, "delay"))

    @staticmethod
    def _vehicle(vp: Any) -> VehiclePosition:
        status = _optional(vp, "current_status")
        position = None
        if vp.HasField("position"):
            position = Position(
                latitude=vp.position.latitude,
                longitude=vp.position.longitude,
            )
        return VehiclePosition(
            current_status=(
                VEHICLE_STOP_STATUS.get(status, str(status)) if status is not None else None
            ),
            timestamp=_optional(vp, "timestamp"),
            position=position,
            stop_id=_optional(vp, "stop_id"),
        )

"""Tests for the GTFS-RT feed decoder."""

import pytest
from pydantic import ValidationError
from google.transit import gtfs_realtime_pb2

from mta_realtime.services.feeds.decoder import FeedDecoder
from mta_realtime.services.feeds.errors import FailureKind, FeedDecodeError

from .fixtures.gtfs_rt_fixture import (
    build_empty_feed,
    build_multi_entity_feed,
    build_trip_update_feed,
    build_vehicle_position_feed,
)


class TestFeedDecoder:
    """Unit tests for FeedDecoder."""

    def test_decode_header(self) -> None:
        feed = FeedDecoder.decode(build_empty_feed(feed_timestamp=1700000000))
        assert feed.schema_version == "1.0"
        assert feed.generated_at == 1700000000
        assert feed.entities == ()

    def test_decode_trip_update(self) -> None:
        data = build_trip_update_feed(feed_timestamp=1700000000)
        feed = FeedDecoder.decode(data)

        assert len(feed.entities) == 1
        entity = feed.entities[0]
        assert entity.id == "tu_058150_L..N"
        assert entity.vehicle is None

        tu = entity.trip_update
        assert tu is not None
        assert tu.trip_id == "058150_L..N"
        assert tu.route_id == "L"
        assert tu.start_time == "09:41:30"
        assert tu.start_date == "20250301"
        assert [stu.stop_id for stu in tu.stop_time_updates] == ["L01N", "L02N"]

    def test_stop_time_events_keep_presence(self) -> None:
        feed = FeedDecoder.decode(build_trip_update_feed(feed_timestamp=1700000000))
        first, second = feed.entities[0].trip_update.stop_time_updates

        assert first.arrival is not None
        assert first.arrival.time == 1700000060
        assert first.arrival.delay == 60
        assert first.departure is None

        assert second.arrival is not None
        assert second.arrival.delay is None
        assert second.departure is not None
        assert second.departure.time == 1700000200
        # Explicit zero delay is a prediction, not an absent one
        assert second.departure.delay == 0

    def test_decode_vehicle_position(self) -> None:
        feed = FeedDecoder.decode(build_vehicle_position_feed(feed_timestamp=1700000000))
        vehicle = feed.entities[0].vehicle

        assert vehicle is not None
        assert vehicle.current_status == "STOPPED_AT"
        assert vehicle.timestamp == 1700000000
        assert vehicle.stop_id == "L01N"
        assert vehicle.position is not None
        assert vehicle.position.latitude == pytest.approx(40.7557, abs=1e-4)
        assert vehicle.position.longitude == pytest.approx(-73.9862, abs=1e-4)
        assert feed.entities[0].trip_update is None

    def test_vehicle_without_position_is_absent(self) -> None:
        data = build_vehicle_position_feed(
            lat=None, lon=None, current_status=None, vehicle_timestamp=None, stop_id=None
        )
        vehicle = FeedDecoder.decode(data).entities[0].vehicle

        assert vehicle is not None
        assert vehicle.position is None
        assert vehicle.current_status is None
        assert vehicle.timestamp is None
        assert vehicle.stop_id is None

    def test_zero_position_is_present(self) -> None:
        vehicle = FeedDecoder.decode(build_vehicle_position_feed(lat=0.0, lon=0.0)).entities[
            0
        ].vehicle

        assert vehicle is not None
        assert vehicle.position is not None
        assert vehicle.position.latitude == 0.0
        assert vehicle.position.longitude == 0.0

    def test_decode_preserves_entity_order(self) -> None:
        data = build_multi_entity_feed(count=10, feed_timestamp=1700000000)
        feed = FeedDecoder.decode(data)

        assert [e.id for e in feed.entities] == [f"entity_{i:03d}" for i in range(10)]
        assert feed.entities[1].vehicle is not None
        assert feed.entities[1].vehicle.current_status == "IN_TRANSIT_TO"
        assert feed.entities[1].trip_update is None

    def test_decode_is_deterministic(self) -> None:
        data = build_multi_entity_feed(count=4, feed_timestamp=1700000000)
        assert FeedDecoder.decode(data) == FeedDecoder.decode(data)

    def test_unknown_fields_are_ignored(self) -> None:
        data = build_empty_feed(feed_timestamp=1700000000) + b"\x78\x01"  # field 15, varint 1
        feed = FeedDecoder.decode(data)
        assert feed.generated_at == 1700000000

    def test_truncated_payload_raises(self) -> None:
        data = build_trip_update_feed(feed_timestamp=1700000000)
        with pytest.raises(FeedDecodeError) as exc_info:
            FeedDecoder.decode(data[:3])
        assert exc_info.value.kind is FailureKind.DECODE_FAILED

    def test_cut_off_payload_raises(self) -> None:
        data = build_trip_update_feed(feed_timestamp=1700000000)
        with pytest.raises(FeedDecodeError):
            FeedDecoder.decode(data[:-5])

    def test_empty_bytes_raises(self) -> None:
        with pytest.raises(FeedDecodeError):
            FeedDecoder.decode(b"")

    def test_garbage_raises(self) -> None:
        with pytest.raises(FeedDecodeError):
            FeedDecoder.decode(b"\xff\xff\xff\xff\xff\xff")

    def test_missing_header_raises(self) -> None:
        msg = gtfs_realtime_pb2.FeedMessage()
        msg.entity.add().id = "abc"
        with pytest.raises(FeedDecodeError):
            FeedDecoder.decode(msg.SerializePartialToString())

    def test_invalid_utf8_version_raises_decode_error(self) -> None:
        data = build_empty_feed(feed_timestamp=1700000000)
        bad = data.replace(b"1.0", b"\xff\xfe0")
        assert bad != data

        with pytest.raises(FeedDecodeError) as exc_info:
            FeedDecoder.decode(bad)
        assert exc_info.value.kind is FailureKind.DECODE_FAILED

    def test_invalid_utf8_stop_id_raises_decode_error(self) -> None:
        data = build_trip_update_feed(
            stop_updates=[{"stop_id": "QQ9N", "arrival_time": 1700000060}],
            feed_timestamp=1700000000,
        )
        bad = data.replace(b"QQ9N", b"\xffQ9N")
        assert bad != data

        with pytest.raises(FeedDecodeError):
            FeedDecoder.decode(bad)

    def test_decoded_message_is_immutable(self) -> None:
        feed = FeedDecoder.decode(build_empty_feed(feed_timestamp=1700000000))
        with pytest.raises(ValidationError):
            feed.generated_at = 0  # type: ignore[misc]

    def test_serializes_with_camel_case_keys(self) -> None:
        feed = FeedDecoder.decode(build_trip_update_feed(feed_timestamp=1700000000))
        doc = feed.model_dump(by_alias=True)

        assert doc["schemaVersion"] == "1.0"
        assert doc["generatedAt"] == 1700000000
        stu = doc["entities"][0]["tripUpdate"]["stopTimeUpdates"][0]
        assert stu["stopId"] == "L01N"
        assert stu["departure"] is None

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pysitaware.geo import extrapolate
from pysitaware.models.position import AssetColor, AssetPosition
from pysitaware.tracking.track import AssetTrack, DuplicatePolicy

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
RED = AssetColor(200, 0, 0)


def _pos(minutes_ago: float, lat: float = 0.0, lon: float = 0.0, **kwargs: object) -> AssetPosition:
    return AssetPosition(
        asset_name="lauv-1",
        latitude=lat,
        longitude=lon,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        type="UUV",
        **kwargs,
    )


def test_empty_track_has_no_latest_or_prediction() -> None:
    track = AssetTrack("lauv-1", RED)

    assert track.get_latest() is None
    assert track.get_prediction(NOW) is None
    assert track.get_track(60, 0, NOW) == []


def test_single_position_has_latest_but_no_prediction() -> None:
    track = AssetTrack("lauv-1", RED)
    first = _pos(5)

    assert track.add_position(first) is True
    assert track.get_latest() == first
    assert track.get_prediction(NOW) is None


def test_prediction_extrapolates_linearly_to_now() -> None:
    track = AssetTrack("lauv-1", RED)
    track.add_position(_pos(20, lat=0.0, lon=0.0))
    track.add_position(_pos(10, lat=0.01, lon=0.02))

    prediction = track.get_prediction(NOW)

    assert prediction is not None
    assert prediction.latitude == pytest.approx(0.02)
    assert prediction.longitude == pytest.approx(0.04)
    assert prediction.timestamp == NOW
    assert prediction.asset_name == "lauv-1"


def test_prediction_absent_for_identical_or_reversed_timestamps() -> None:
    track = AssetTrack("lauv-1", RED, duplicate_policy=DuplicatePolicy.NONE)
    track.add_position(_pos(10, lat=0.0))
    track.add_position(_pos(10, lat=1.0))
    assert track.get_prediction(NOW) is None

    late = AssetTrack("lauv-1", RED)
    late.add_position(_pos(5, lat=0.0))
    late.add_position(_pos(15, lat=1.0))
    assert late.get_prediction(NOW) is None


def test_out_of_order_report_is_appended_at_the_end() -> None:
    track = AssetTrack("lauv-1", RED)
    track.add_position(_pos(5, lat=1.0))
    late = _pos(30, lat=2.0)
    track.add_position(late)

    assert track.get_latest() == late
    assert [p.latitude for p in track.positions()] == [1.0, 2.0]


class TestDuplicatePolicy:
    def test_fix_rejects_same_timestamp_and_location(self) -> None:
        track = AssetTrack("lauv-1", RED)
        assert track.add_position(_pos(5, lat=1.0, metadata="a")) is True
        assert track.add_position(_pos(5, lat=1.0, metadata="b")) is False
        assert track.add_position(_pos(5, lat=1.5)) is True
        assert len(track) == 2

    def test_content_compares_metadata_too(self) -> None:
        track = AssetTrack("lauv-1", RED, duplicate_policy=DuplicatePolicy.CONTENT)
        assert track.add_position(_pos(5, lat=1.0, metadata="a")) is True
        assert track.add_position(_pos(5, lat=1.0, metadata="b")) is True
        assert track.add_position(_pos(5, lat=1.0, metadata="b")) is False

    def test_none_accepts_everything(self) -> None:
        track = AssetTrack("lauv-1", RED, duplicate_policy=DuplicatePolicy.NONE)
        assert track.add_position(_pos(5)) is True
        assert track.add_position(_pos(5)) is True
        assert len(track) == 2

    def test_offer_reports_previous_latest(self) -> None:
        track = AssetTrack("lauv-1", RED)
        first = _pos(5)
        assert track.offer(first) == (True, None)
        assert track.offer(_pos(1)) == (True, first)


def test_get_track_window_is_half_open_and_ordered() -> None:
    track = AssetTrack("lauv-1", RED)
    for minutes_ago in (40, 30, 20, 15, 10, 0):
        track.add_position(_pos(minutes_ago, lat=minutes_ago / 100))

    window = track.get_track(20, 10, NOW)

    # Ages in [10, 30) minutes.
    assert [round(p.age(NOW).total_seconds() / 60) for p in window] == [20, 15, 10]
    assert track.get_track(20, 10, NOW) == window
    assert len(track) == 6


def test_get_track_is_empty_when_nothing_matches() -> None:
    track = AssetTrack("lauv-1", RED)
    track.add_position(_pos(100))
    assert track.get_track(15, 0, NOW) == []


def test_color_can_be_changed() -> None:
    track = AssetTrack("lauv-1", RED)
    track.set_color(AssetColor(0, 0, 255))
    assert track.color.hex == "#0000FF"


def test_extrapolate_takes_short_way_across_antimeridian() -> None:
    lat, lon = extrapolate(0.0, 179.5, 0.0, -179.5, 1.0)
    assert lat == pytest.approx(0.0)
    assert lon == pytest.approx(-178.5)


def test_extrapolate_clamps_latitude() -> None:
    lat, _lon = extrapolate(80.0, 0.0, 89.0, 0.0, 2.0)
    assert lat == 90.0

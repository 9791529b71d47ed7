"""
Tests for AircraftTrack.
"""

import pytest

from airprox.tracking.sources import ListSampleSource
from airprox.tracking.track import AircraftTrack
from airprox.utils import SpeedVector, destination_point


@pytest.fixture
def track(make_records):
    """Northbound aircraft with fixes every second for 60 s."""
    return AircraftTrack(ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=60)), 0)


def run_to(track, t_end):
    t = track.advance_to_start()
    while t <= t_end:
        track.advance_to_time(t)
        t += 1


class TestStart:
    """Tests for starting a track."""

    def test_advance_to_start(self, track):
        """The first usable time is the fourth fix."""
        assert track.advance_to_start() == 3
        assert track.valid
        assert track.flight_time_start == 0.0
        assert track.max_time == 3

    def test_never_flying(self, make_records):
        records = make_records(52.0, 13.0, 0.0, 50.0, t1=20, flying=False)
        track = AircraftTrack(ListSampleSource("A", records), 0)
        assert track.advance_to_start() is None
        assert not track.valid

    def test_too_few_fixes(self, make_records):
        track = AircraftTrack(ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=2)), 0)
        assert track.advance_to_start() is None

    def test_late_takeoff(self, make_records):
        records = make_records(52.0, 13.0, 0.0, 0.0, t1=9, flying=False)
        records += make_records(52.0, 13.0, 0.0, 50.0, t0=10, t1=40)
        track = AircraftTrack(ListSampleSource("A", records), 0)
        assert track.advance_to_start() == 10
        assert track.flight_time_start == 10.0

    def test_reset(self, track):
        run_to(track, 20)
        assert track.trail
        track.reset()
        assert not track.trail
        assert track.flight_time_start is None
        assert track.advance_to_start() == 3


class TestAdvance:
    """Tests for stepping a track through time."""

    def test_advance_to_time(self, track):
        track.advance_to_start()
        assert track.advance_to_time(10)
        assert track.valid
        assert track.live
        assert track.interp_loc.time == 10

        expected_lat, _ = destination_point(52.0, 13.0, 0.0, 500.0)
        assert track.interp_loc.latitude == pytest.approx(expected_lat, abs=1e-9)

    def test_interp_loc_last(self, track):
        track.advance_to_start()
        track.advance_to_time(10)
        track.advance_to_time(11)
        assert track.interp_loc_last.time == 10
        assert track.interp_loc.time == 11

    def test_trail_is_bounded(self, make_records):
        track = AircraftTrack(
            ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=60)), 0, max_trail=5
        )
        run_to(track, 20)
        assert len(track.trail) == 5
        assert track.trail[-1].time == 20

    def test_end_of_data(self, make_records):
        track = AircraftTrack(ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=20)), 0)
        track.advance_to_start()
        assert track.advance_to_time(18)
        assert not track.advance_to_time(19)
        assert not track.valid
        assert track.max_time == 20

    def test_before_data(self, track):
        track.advance_to_start()
        assert not track.advance_to_time(-5)

    def test_low_altitude_not_live(self, make_records):
        records = make_records(52.0, 13.0, 0.0, 50.0, t1=30, altitude=200.0)
        track = AircraftTrack(ListSampleSource("A", records), 0)
        track.advance_to_start()
        assert not track.advance_to_time(10)
        assert not track.live
        assert not track.valid

    def test_reconstruction_straight_flight(self, track):
        run_to(track, 15)
        point = track.trail[-1]
        assert point.v_wind.norm == pytest.approx(50.0, rel=1e-3)
        assert point.bank_angle == pytest.approx(0.0, abs=1e-6)
        assert point.plausible

    def test_keep_trace(self, make_records):
        track = AircraftTrack(
            ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=30)), 0, keep_trace=True
        )
        run_to(track, 10)
        assert [p["t"] for p in track.trace] == list(range(3, 11))
        assert track.trace[0]["gps_altitude"] == 1000.0


class TestDerivedState:
    """Tests for symbols, wind and lookback."""

    def test_symbol(self, track):
        assert track.get_symbol() == " "
        run_to(track, 10)
        assert track.get_symbol() == "."

    def test_wind_substitution(self, track):
        run_to(track, 5)
        assert not track.wind_available
        track.set_wind_if_not_available(SpeedVector(270.0, 8.0))
        assert track.wind.norm == 8.0

    def test_own_wind_kept(self, make_records):
        records = make_records(52.0, 13.0, 0.0, 50.0, t1=30, wind_bearing=90.0, wind_speed=4.0)
        track = AircraftTrack(ListSampleSource("A", records), 0)
        run_to(track, 5)
        assert track.wind_available
        track.set_wind_if_not_available(SpeedVector(270.0, 8.0))
        assert track.wind.norm == 4.0

    def test_aspect_and_visibility(self, make_records):
        a = AircraftTrack(ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=30)), 0)
        start_b = destination_point(52.0, 13.0, 0.0, 100.0)
        b = AircraftTrack(ListSampleSource("B", make_records(*start_b, 0.0, 50.0, t1=30)), 1)
        for tr in (a, b):
            tr.advance_to_start()
            tr.advance_to_time(10)

        aspect = a.get_aspect(b)
        assert aspect.range == pytest.approx(100.0, rel=1e-3)
        assert aspect.azimuth_angle == pytest.approx(0.0, abs=1e-3)

        assert not a.calc_aspect(b, max_range=50.0)
        assert not a.other_visible(0, 20, 1)
        assert a.calc_aspect(b, max_range=150.0)
        assert a.other_visible(0, 20, 1)
        assert not a.other_visible(11, 20, 1)
        assert not a.other_visible(0, 20, 2)

    def test_turn_mode_list(self, make_records):
        records = make_records(52.0, 13.0, 0.0, 50.0, t1=40)
        for r in records:
            r["turn_mode"] = "cruise" if r["time"] < 15 else "circling"
        track = AircraftTrack(ListSampleSource("A", records), 0)
        run_to(track, 25)
        assert track.turn_mode_list(0, 30) == ["cruise", "circling"]
        assert track.turn_mode_list(0, 8) == ["cruise"]

    def test_flight_summary(self, track):
        run_to(track, 20)
        track.finalise()
        summary = track.flight_summary()
        assert summary["id"] == "A"
        assert summary["index"] == 0
        assert summary["flight_time_start"] == 0.0
        assert summary["flight_time_end"] is None
        assert summary["alt_start_m"] == 1000.0
        assert summary["baro_error_m"] == pytest.approx(0.0, abs=0.1)
        assert summary["avg_timestep_s"] == 0.0

"""
Tests for AIRPROX Trajectory Reader.

This test suite covers:
- Flight listing with a minimum number of fixes
- Conversion of stored positions into fix records
- Building sample sources from the database
"""

import pytest

from airprox.tracking.database import FlightDatabase
from airprox.tracking.reader import TrajectoryReader

# ============================================================================
# Fixtures
# ============================================================================


def positions(n, t0=0.0, **overrides):
    rows = []
    for i in range(n):
        row = {
            "timestamp": t0 + i,
            "latitude": 52.0 + i * 0.0005,
            "longitude": 13.0,
            "altitude_m": 1000.0,
            "geo_altitude_m": 1025.0,
            "velocity_ms": 55.0,
            "heading": 0.0,
            "on_ground": False,
            "h_accuracy_m": None,
        }
        row.update(overrides)
        rows.append(row)
    return rows


@pytest.fixture
def populated_db(tmp_path) -> str:
    """Database with three flights of different lengths."""
    path = str(tmp_path / "flights.db")
    db = FlightDatabase(path)

    f1 = db.add_flight("abc123", "D-KXYZ", "ASK 21")
    db.add_positions(f1, positions(6, h_accuracy_m=3.0))

    f2 = db.add_flight("def456", None, None)
    db.add_positions(f2, positions(5, geo_altitude_m=None, velocity_ms=None))

    f3 = db.add_flight("ghi789", "SHORT")
    db.add_positions(f3, positions(2))

    return path


@pytest.fixture
def reader(populated_db):
    reader = TrajectoryReader(populated_db)
    yield reader
    reader.close()


# ============================================================================
# Tests
# ============================================================================


class TestFlights:
    """Tests for flight listing."""

    def test_min_positions(self, reader):
        flights = reader.get_flights()
        assert [f["icao24"] for f in flights] == ["abc123", "def456"]
        assert flights[0]["position_count"] == 6

    def test_all_flights(self, reader):
        assert len(reader.get_flights(min_positions=1)) == 3


class TestRecords:
    """Tests for record conversion."""

    def test_record_fields(self, reader):
        flight_id = reader.get_flights()[0]["id"]
        records = reader.get_records(flight_id)
        assert len(records) == 6

        first = records[0]
        assert first["time"] == 0.0
        assert first["gps_altitude"] == 1025.0
        assert first["baro_altitude"] == 1000.0
        assert first["ground_speed"] == 55.0
        assert first["h_accuracy"] == 3.0
        assert first["flying"] is True

    def test_records_ordered_by_time(self, tmp_path):
        path = str(tmp_path / "unordered.db")
        db = FlightDatabase(path)
        flight_id = db.add_flight("abc123")
        db.add_positions(flight_id, list(reversed(positions(4, t0=1000.0))))

        reader = TrajectoryReader(path)
        try:
            times = [r["time"] for r in reader.get_records(flight_id)]
        finally:
            reader.close()
        assert times == [1000.0, 1001.0, 1002.0, 1003.0]

    def test_geo_altitude_fallback(self, reader):
        """Missing geometric altitude falls back to the baro altitude."""
        flight_id = reader.get_flights()[1]["id"]
        record = reader.get_records(flight_id)[0]
        assert record["gps_altitude"] == 1000.0
        assert "ground_speed" not in record
        assert "h_accuracy" not in record
        assert record["flying"] is True

    def test_not_flying(self, tmp_path):
        """On-ground and slow fixes are not flying."""
        path = str(tmp_path / "ground.db")
        db = FlightDatabase(path)
        fid = db.add_flight("abc123")
        db.add_positions(fid, positions(2, on_ground=True) + positions(2, t0=10.0, velocity_ms=3.0))

        reader = TrajectoryReader(path)
        try:
            records = reader.get_records(fid)
        finally:
            reader.close()
        assert [r["flying"] for r in records] == [False, False, False, False]


class TestSources:
    """Tests for source construction."""

    def test_load_sources(self, reader):
        sources = reader.load_sources()
        assert [s.id for s in sources] == ["D-KXYZ", "def456"]
        assert sources[0].type_info == "ASK 21"
        assert sources[1].type_info == ""
        assert len(sources[0]) == 6

    def test_sources_are_usable(self, reader):
        source = reader.load_sources()[0]
        assert source.next()
        assert source.basic.location_available
        assert source.calculated.flying

    def test_close_twice(self, populated_db):
        reader = TrajectoryReader(populated_db)
        reader.close()
        reader.close()
        assert reader.conn is None

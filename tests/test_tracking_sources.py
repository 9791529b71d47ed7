"""
Tests for trajectory sample sources.
"""

import csv

import pytest

from airprox.tracking.sources import (
    ListSampleSource,
    CsvSampleSource,
    parse_record,
    source_id_from_path,
)


class TestListSampleSource:
    """Tests for the in-memory source."""

    def test_iterates_records(self, make_records):
        source = ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=4))
        assert len(source) == 5
        times = []
        while source.next():
            times.append(source.basic.time)
        assert times == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert not source.next()

    def test_rewind(self, make_records):
        source = ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=4))
        source.next()
        source.next()
        source.rewind()
        assert source.next()
        assert source.basic.time == 0.0

    def test_basic_state(self, make_records):
        source = ListSampleSource("A", make_records(52.0, 13.0, 0.0, 50.0, t1=2, h_accuracy=3.0))
        source.next()
        assert source.basic.location_available
        assert source.basic.gps_altitude_available
        assert source.basic.gps_altitude == 1000.0
        assert source.basic.h_accuracy == 3.0
        assert source.calculated.flying

    def test_derived_speed_and_flying(self):
        """Ground speed is derived from consecutive fixes when absent."""
        records = [
            {"time": 0, "latitude": 52.0, "longitude": 13.0, "gps_altitude": 900},
            {"time": 1, "latitude": 52.001, "longitude": 13.0, "gps_altitude": 900},
        ]
        source = ListSampleSource("A", records)
        source.next()
        assert source.basic.ground_speed == 0.0
        assert not source.calculated.flying
        source.next()
        assert source.basic.ground_speed == pytest.approx(111.2, abs=0.5)
        assert source.calculated.flying

    def test_baro_defaults_to_gps(self):
        source = ListSampleSource(
            "A", [{"time": 0, "latitude": 52.0, "longitude": 13.0, "gps_altitude": 750}]
        )
        source.next()
        assert source.basic.baro_altitude == 750

    def test_missing_location(self):
        source = ListSampleSource("A", [{"time": 0, "gps_altitude": 750}])
        source.next()
        assert not source.basic.location_available

    def test_wind_and_turn_mode(self):
        records = [
            {
                "time": 0,
                "latitude": 52.0,
                "longitude": 13.0,
                "gps_altitude": 900,
                "wind_bearing": 270.0,
                "wind_speed": 5.0,
                "turn_mode": "circling",
            },
            {
                "time": 1,
                "latitude": 52.0,
                "longitude": 13.0,
                "gps_altitude": 900,
                "turn_mode": "loop",
            },
        ]
        source = ListSampleSource("A", records)
        source.next()
        assert source.calculated.estimated_wind_available
        assert source.calculated.estimated_wind.bearing == 270.0
        assert source.calculated.estimated_wind.norm == 5.0
        assert source.calculated.turn_mode == "circling"

        source.next()
        assert not source.calculated.estimated_wind_available
        assert source.calculated.turn_mode == "cruise"


class TestParsing:
    """Tests for CSV record parsing."""

    def test_parse_record(self):
        record = parse_record(
            {
                "time": "12",
                "latitude": " 52.5 ",
                "flying": "true",
                "turn_mode": "entry",
                "wind_speed": "",
            }
        )
        assert record == {
            "time": 12.0,
            "latitude": 52.5,
            "flying": True,
            "turn_mode": "entry",
        }

    def test_parse_flying_false(self):
        assert parse_record({"flying": "0"})["flying"] is False

    def test_source_id_from_path(self):
        assert source_id_from_path("logs/2023-07-01_D-KXYZ.csv") == "D-KXYZ"
        assert source_id_from_path("glider.csv") == "glider"


class TestCsvSampleSource:
    """Tests for the CSV file source."""

    def test_reads_sorted_records(self, tmp_path):
        path = tmp_path / "2023-07-01_D-KXYZ.csv"
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["time", "latitude", "longitude", "gps_altitude", "flying"])
            writer.writerow([2, 52.002, 13.0, 1000, 1])
            writer.writerow([0, 52.000, 13.0, 1000, 1])
            writer.writerow(["", 52.009, 13.0, 1000, 1])
            writer.writerow([1, 52.001, 13.0, 1000, 1])

        source = CsvSampleSource(str(path))
        assert source.id == "D-KXYZ"
        assert len(source) == 3

        times = []
        while source.next():
            times.append(source.basic.time)
        assert times == [0.0, 1.0, 2.0]

    def test_explicit_id(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("time,latitude,longitude,gps_altitude\n0,52.0,13.0,900\n")
        source = CsvSampleSource(str(path), source_id="GLIDER")
        assert source.id == "GLIDER"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CsvSampleSource(str(tmp_path / "missing.csv"))

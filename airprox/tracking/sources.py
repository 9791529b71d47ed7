"""
Trajectory Sample Sources
Pull interface through which the analysis reads each aircraft's fixes.

A source is advanced with ``next()`` and exposes the most recent fix as
``basic`` (NavState) plus a ``calculated`` slot (DerivedState) that the
analysis may annotate, e.g. with a substituted wind estimate.
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..utils import SpeedVector, haversine_distance, validate_coordinates
from .constants import DEFAULT_H_ACCURACY_M, MIN_FLYING_SPEED_MS, TURN_MODES

NUMERIC_FIELDS = (
    "time",
    "latitude",
    "longitude",
    "gps_altitude",
    "baro_altitude",
    "ground_speed",
    "h_accuracy",
    "wind_bearing",
    "wind_speed",
)


@dataclass
class NavState:
    """Basic navigation state of the latest fix."""

    time: float = 0.0
    latitude: float = 0.0
    longitude: float = 0.0
    gps_altitude: float = 0.0
    baro_altitude: float = 0.0
    ground_speed: float = 0.0
    location_available: bool = False
    gps_altitude_available: bool = False
    h_accuracy: float = 0.0  # 0 means not reported


@dataclass
class DerivedState:
    """State derived by estimators outside the analysis core."""

    estimated_wind: SpeedVector = field(default_factory=SpeedVector)
    estimated_wind_available: bool = False
    flying: bool = False
    turn_mode: str = "cruise"


class SampleSource:
    """
    Base class for per-aircraft fix sources.

    Subclasses implement ``next()`` and ``rewind()``.
    """

    def __init__(self, source_id: str, type_info: str = ""):
        self.id = source_id
        self.type_info = type_info
        self.basic = NavState()
        self.calculated = DerivedState()

    def next(self) -> bool:
        """Advance to the next fix; False at end of data."""
        raise NotImplementedError

    def rewind(self) -> None:
        """Return to the start of the data."""
        raise NotImplementedError


class ListSampleSource(SampleSource):
    """
    Source over an in-memory list of fix records.

    Records are dictionaries with at least ``time``, ``latitude``,
    ``longitude`` and ``gps_altitude``. Optional keys: ``baro_altitude``
    (defaults to GPS altitude), ``ground_speed`` (derived from consecutive
    fixes if absent), ``h_accuracy``, ``flying`` (defaults to ground speed
    above MIN_FLYING_SPEED_MS), ``wind_bearing``/``wind_speed`` and
    ``turn_mode``.

    Example:
        >>> source = ListSampleSource("ABC", [
        ...     {"time": 0, "latitude": 52.0, "longitude": 13.0, "gps_altitude": 900},
        ... ])
        >>> source.next()
        True
    """

    def __init__(
        self, source_id: str, records: Iterable[Dict[str, Any]], type_info: str = ""
    ):
        super().__init__(source_id, type_info)
        self._records: List[Dict[str, Any]] = [dict(r) for r in records]
        self._index = 0

    def __len__(self) -> int:
        return len(self._records)

    def rewind(self) -> None:
        self._index = 0
        self.basic = NavState()
        self.calculated = DerivedState()

    def next(self) -> bool:
        if self._index >= len(self._records):
            return False

        record = self._records[self._index]
        last = self.basic if self._index > 0 else None
        self._index += 1
        self._apply(record, last)
        return True

    def _apply(self, record: Dict[str, Any], last: Optional[NavState]) -> None:
        lat = record.get("latitude")
        lon = record.get("longitude")
        gps_alt = record.get("gps_altitude")
        baro_alt = record.get("baro_altitude")
        if baro_alt is None:
            baro_alt = gps_alt

        ground_speed = record.get("ground_speed")
        if ground_speed is None:
            ground_speed = self._derive_speed(record, last)

        self.basic = NavState(
            time=float(record["time"]),
            latitude=lat if lat is not None else 0.0,
            longitude=lon if lon is not None else 0.0,
            gps_altitude=gps_alt if gps_alt is not None else 0.0,
            baro_altitude=baro_alt if baro_alt is not None else 0.0,
            ground_speed=ground_speed,
            location_available=(
                lat is not None and lon is not None and validate_coordinates(lat, lon)
            ),
            gps_altitude_available=gps_alt is not None,
            h_accuracy=record.get("h_accuracy") or DEFAULT_H_ACCURACY_M,
        )

        flying = record.get("flying")
        self.calculated.flying = (
            bool(flying) if flying is not None else ground_speed >= MIN_FLYING_SPEED_MS
        )

        turn_mode = record.get("turn_mode")
        self.calculated.turn_mode = turn_mode if turn_mode in TURN_MODES else "cruise"

        wind_speed = record.get("wind_speed")
        if wind_speed is not None:
            self.calculated.estimated_wind = SpeedVector(
                record.get("wind_bearing") or 0.0, wind_speed
            )
            self.calculated.estimated_wind_available = True
        else:
            self.calculated.estimated_wind_available = False

    @staticmethod
    def _derive_speed(record: Dict[str, Any], last: Optional[NavState]) -> float:
        if last is None or not last.location_available:
            return 0.0
        if record.get("latitude") is None or record.get("longitude") is None:
            return 0.0
        dt = float(record["time"]) - last.time
        if dt <= 0:
            return 0.0
        return (
            haversine_distance(
                last.latitude, last.longitude, record["latitude"], record["longitude"]
            )
            / dt
        )


def parse_record(row: Dict[str, str]) -> Dict[str, Any]:
    """
    Convert a CSV row of strings into a fix record.

    Empty cells become missing keys.
    """
    record: Dict[str, Any] = {}
    for key, value in row.items():
        if key is None or value is None:
            continue
        key = key.strip()
        value = value.strip()
        if value == "":
            continue
        if key in NUMERIC_FIELDS:
            record[key] = float(value)
        elif key == "flying":
            record[key] = value.lower() in ("1", "true", "yes")
        else:
            record[key] = value
    return record


def source_id_from_path(path: Path) -> str:
    """Aircraft id from a log filename: the part after the last underscore."""
    stem = Path(path).stem
    return stem.rsplit("_", 1)[-1] if "_" in stem else stem


class CsvSampleSource(ListSampleSource):
    """
    Source reading one aircraft's fixes from a CSV file.

    The header names the record keys (see ListSampleSource). The aircraft id
    is taken from the filename, e.g. ``2023-07-01_D-KXYZ.csv`` -> ``D-KXYZ``.
    """

    def __init__(self, path: str, source_id: Optional[str] = None):
        self.path = Path(path)
        with open(self.path, "r", encoding="utf-8", newline="") as f:
            records = [parse_record(row) for row in csv.DictReader(f)]
        records = [r for r in records if "time" in r]
        records.sort(key=lambda r: r["time"])
        super().__init__(source_id or source_id_from_path(self.path), records)

"""
Shared fixtures: synthetic flight logs.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from airprox.utils import destination_point

BASE_LAT = 52.0
BASE_LON = 13.0


def straight_records(lat, lon, bearing, speed, t0=0, t1=120, altitude=1000.0, **extra):
    """
    One fix per second along a great circle at constant speed and altitude.

    Extra keyword arguments are copied into every record.
    """
    records = []
    for t in range(t0, t1 + 1):
        plat, plon = destination_point(lat, lon, bearing, speed * (t - t0))
        record = {
            "time": t,
            "latitude": plat,
            "longitude": plon,
            "gps_altitude": altitude,
            "baro_altitude": altitude,
            "ground_speed": speed,
            "flying": True,
        }
        record.update(extra)
        records.append(record)
    return records


@pytest.fixture
def make_records():
    """Factory for straight-line flight records."""
    return straight_records


@pytest.fixture
def base_location():
    """Reference location of the synthetic flights."""
    return BASE_LAT, BASE_LON

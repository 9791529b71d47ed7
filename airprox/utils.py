"""
AIRPROX Utility Functions
Common geodesy, vector and formatting helpers shared by all components.
"""

from dataclasses import dataclass
from math import radians, sin, cos, sqrt, atan2, degrees, asin, pi
from typing import Tuple

from .config import Constants


@dataclass(frozen=True)
class SpeedVector:
    """
    A speed (or distance) with a direction.

    For ground tracks the bearing is the direction of travel. For wind the
    bearing is the direction the wind blows FROM, so adding a wind vector to a
    ground track yields the air-relative vector.
    """

    bearing: float = 0.0  # degrees, 0=North, 90=East
    norm: float = 0.0  # m/s (or m)

    @property
    def east(self) -> float:
        return self.norm * sin(radians(self.bearing))

    @property
    def north(self) -> float:
        return self.norm * cos(radians(self.bearing))

    @classmethod
    def from_components(cls, east: float, north: float) -> "SpeedVector":
        """Build a vector from east/north components."""
        norm = sqrt(east * east + north * north)
        if norm == 0:
            return cls(0.0, 0.0)
        return cls((degrees(atan2(east, north)) + 360) % 360, norm)

    def __add__(self, other: "SpeedVector") -> "SpeedVector":
        return SpeedVector.from_components(
            self.east + other.east, self.north + other.north
        )


def average_vectors(vectors) -> SpeedVector:
    """Component-wise average of a sequence of SpeedVectors."""
    vectors = list(vectors)
    if not vectors:
        return SpeedVector()
    east = sum(v.east for v in vectors) / len(vectors)
    north = sum(v.north for v in vectors) / len(vectors)
    return SpeedVector.from_components(east, north)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great circle distance between two points using Haversine formula.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance in meters

    Example:
        >>> round(haversine_distance(52.0, 13.0, 52.001, 13.0))
        111
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return Constants.EARTH_RADIUS_M * c


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate bearing (direction) from point 1 to point 2.

    Args:
        lat1, lon1: Start point (degrees)
        lat2, lon2: End point (degrees)

    Returns:
        Bearing in degrees (0-360, where 0/360=North, 90=East, 180=South, 270=West)
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlon = lon2 - lon1

    x = sin(dlon) * cos(lat2)
    y = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)

    bearing = degrees(atan2(x, y))
    return (bearing + 360) % 360


def destination_point(
    lat: float, lon: float, bearing: float, distance_m: float
) -> Tuple[float, float]:
    """
    Find the point reached travelling a distance along a bearing.

    Args:
        lat, lon: Start point (degrees)
        bearing: Initial bearing (degrees)
        distance_m: Distance to travel (meters)

    Returns:
        Tuple of (latitude, longitude) in degrees
    """
    delta = distance_m / Constants.EARTH_RADIUS_M
    theta = radians(bearing)
    phi1 = radians(lat)
    lambda1 = radians(lon)

    phi2 = asin(sin(phi1) * cos(delta) + cos(phi1) * sin(delta) * cos(theta))
    lambda2 = lambda1 + atan2(
        sin(theta) * sin(delta) * cos(phi1), cos(delta) - sin(phi1) * sin(phi2)
    )
    return degrees(phi2), (degrees(lambda2) + 540) % 360 - 180


def get_bounding_box(
    lat: float, lon: float, radius_m: float
) -> Tuple[float, float, float, float]:
    """
    Calculate bounding box coordinates for a given point and radius.

    Args:
        lat: Center latitude in degrees
        lon: Center longitude in degrees
        radius_m: Radius in meters

    Returns:
        Tuple of (lat_min, lon_min, lat_max, lon_max)
    """
    lat_delta = radius_m / Constants.M_PER_DEGREE_LAT

    # Longitude delta varies by latitude
    lon_delta = radius_m / (Constants.M_PER_DEGREE_LAT * max(cos(radians(lat)), 1e-6))

    return (
        lat - lat_delta,
        lon - lon_delta,
        lat + lat_delta,
        lon + lon_delta,
    )


def in_bounding_box(
    lat: float, lon: float, box: Tuple[float, float, float, float]
) -> bool:
    """Check whether a point lies inside a (lat_min, lon_min, lat_max, lon_max) box."""
    lat_min, lon_min, lat_max, lon_max = box
    return lat_min <= lat <= lat_max and lon_min <= lon <= lon_max


def wrap_radians(angle: float) -> float:
    """Wrap an angle to the signed range [-pi, pi)."""
    return (angle + pi) % (2 * pi) - pi


class FlatProjection:
    """
    Local equirectangular projection around a reference point.

    Coordinates are in meters, x east and y north of the reference. Accurate
    enough over the few tens of kilometres a single analysis covers.
    """

    def __init__(self, ref_lat: float = 0.0, ref_lon: float = 0.0):
        self.ref_lat = ref_lat
        self.ref_lon = ref_lon
        self._m_per_deg_lat = Constants.EARTH_RADIUS_M * pi / 180.0
        self._m_per_deg_lon = self._m_per_deg_lat * cos(radians(ref_lat))

    def project(self, lat: float, lon: float) -> Tuple[float, float]:
        """Project (lat, lon) to (x, y) meters."""
        return (
            (lon - self.ref_lon) * self._m_per_deg_lon,
            (lat - self.ref_lat) * self._m_per_deg_lat,
        )

    def unproject(self, x: float, y: float) -> Tuple[float, float]:
        """Unproject (x, y) meters back to (lat, lon)."""
        lon = self.ref_lon + (x / self._m_per_deg_lon if self._m_per_deg_lon else 0.0)
        return self.ref_lat + y / self._m_per_deg_lat, lon


def format_altitude(altitude_m: float, include_feet: bool = True) -> str:
    """
    Format altitude with optional feet conversion.

    Example:
        >>> format_altitude(1000)
        '1000 m (3281 ft)'
    """
    if altitude_m is None:
        return "N/A"

    if include_feet:
        feet = altitude_m * Constants.METERS_TO_FEET
        return f"{altitude_m:.0f} m ({feet:.0f} ft)"

    return f"{altitude_m:.0f} m"


def format_duration(seconds: int) -> str:
    """
    Format duration in human-readable format.

    Example:
        >>> format_duration(3665)
        '1h 1m 5s'
    """
    if seconds is None or seconds < 0:
        return "N/A"

    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    Validate latitude and longitude coordinates.

    Example:
        >>> validate_coordinates(100, 200)
        False
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180


class Averager:
    """Running arithmetic mean."""

    def __init__(self):
        self.num = 0
        self.acc = 0.0
        self.avg = 0.0

    def empty(self) -> bool:
        return self.num == 0

    def add(self, x) -> None:
        """Add a value, or merge another Averager."""
        if isinstance(x, Averager):
            self.acc += x.acc
            self.num += x.num
        else:
            self.acc += x
            self.num += 1

    def calculate(self) -> bool:
        if self.num:
            self.avg = self.acc / self.num
            return True
        return False

"""
Trajectory Interpolation
Continuous-time reconstruction of position and altitude from discrete fixes.

Positions are evaluated with a cubic Catmull-Rom spline over a sliding window
of the four most recent fixes. Latitude and longitude are treated as locally
linear, which holds for fixes a few seconds apart.

See:
    http://www.cs.cmu.edu/~462/projects/assn2/assn2/catmullRom.pdf
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque

from ..utils import SpeedVector, haversine_distance, calculate_bearing
from .constants import (
    DEFAULT_ALPHA,
    WINDOW_SIZE,
    ACTUAL_TOLERANCE_S,
    VECTOR_HALF_SPAN_S,
)


@dataclass(frozen=True)
class TrajectorySample:
    """A single raw fix from a flight recorder."""

    latitude: float
    longitude: float
    gps_altitude: float
    baro_altitude: float
    time: float


@dataclass(frozen=True)
class InterpolatedState:
    """Position and altitude evaluated at an arbitrary time."""

    latitude: float
    longitude: float
    gps_altitude: float
    baro_altitude: float
    time: float


class CatmullRomInterpolator:
    """
    Catmull-Rom spline interpolator over the four most recent fixes.

    Interpolation happens between the two central fixes (p1, p2); the outer
    fixes only shape the tangents. Callers feed fixes while ``need_data(t)``
    is true, then evaluate at ``t``.

    Example:
        >>> interp = CatmullRomInterpolator(alpha=0.5)
        >>> while interp.need_data(t) and source.next():
        ...     interp.update(sample_from(source))
        >>> state = interp.interpolate(t)
    """

    def __init__(self, alpha: float = DEFAULT_ALPHA):
        """
        Initialize interpolator.

        Args:
            alpha: Spline tension (0.5 gives the centripetal-like standard form)
        """
        self.alpha = alpha
        self._samples: Deque[TrajectorySample] = deque(maxlen=WINDOW_SIZE)

    def reset(self) -> None:
        """Discard all held fixes."""
        self._samples.clear()

    def update(self, sample: TrajectorySample) -> bool:
        """
        Push a new fix into the window.

        Fixes not strictly later than the newest held fix are rejected.

        Returns:
            True if the fix was accepted
        """
        if self._samples and sample.time <= self._samples[-1].time:
            return False
        self._samples.append(sample)
        return True

    def ready(self) -> bool:
        """True once the window holds four fixes."""
        return len(self._samples) == WINDOW_SIZE

    def need_data(self, t: float) -> bool:
        """True while the window cannot bracket ``t`` between its central fixes."""
        return not self.ready() or self._samples[2].time <= t

    def is_actual(self, t: float) -> bool:
        """True if ``t`` coincides with one of the central fixes."""
        if not self.ready():
            return False
        return (
            abs(t - self._samples[1].time) < ACTUAL_TOLERANCE_S
            or abs(t - self._samples[2].time) < ACTUAL_TOLERANCE_S
        )

    @property
    def min_time(self) -> float:
        """Time of the oldest held fix."""
        return self._samples[0].time

    @property
    def max_time(self) -> float:
        """Time of the newest held fix (never negative)."""
        return max([0.0] + [s.time for s in self._samples])

    def interpolate(self, t: float) -> InterpolatedState:
        """
        Evaluate the spline at time ``t``.

        ``t`` is clamped to the interval between the two central fixes.

        Args:
            t: Evaluation time (seconds)

        Returns:
            InterpolatedState stamped with ``t``
        """
        p0, p1, p2, p3 = self._samples
        u = self._time_fraction(t)
        c = self._basis(u)

        def blend(attr: str) -> float:
            return (
                getattr(p0, attr) * c[0]
                + getattr(p1, attr) * c[1]
                + getattr(p2, attr) * c[2]
                + getattr(p3, attr) * c[3]
            )

        return InterpolatedState(
            latitude=blend("latitude"),
            longitude=blend("longitude"),
            gps_altitude=blend("gps_altitude"),
            baro_altitude=blend("baro_altitude"),
            time=t,
        )

    def get_vector(self, t: float) -> SpeedVector:
        """
        Estimate ground velocity at time ``t``.

        The bearing comes from finite-differencing the spline a quarter second
        either side of ``t``; the speed blends the average speeds of the two
        segments adjoining p1, weighted by the time fraction.

        Returns:
            Ground track as a SpeedVector (m/s), zero if the fixes are degenerate
        """
        p0, p1, p2, _ = self._samples
        if p2.time - p1.time <= 0 or p1.time - p0.time <= 0:
            return SpeedVector()

        u = self._time_fraction(t)
        speed2 = haversine_distance(
            p1.latitude, p1.longitude, p2.latitude, p2.longitude
        ) / (p2.time - p1.time)
        speed1 = haversine_distance(
            p0.latitude, p0.longitude, p1.latitude, p1.longitude
        ) / (p1.time - p0.time)

        r0 = self.interpolate(t - VECTOR_HALF_SPAN_S)
        r1 = self.interpolate(t + VECTOR_HALF_SPAN_S)
        bearing = calculate_bearing(r0.latitude, r0.longitude, r1.latitude, r1.longitude)

        return SpeedVector(bearing, speed2 * u + speed1 * (1 - u))

    def _time_fraction(self, t: float) -> float:
        p1, p2 = self._samples[1], self._samples[2]
        span = p2.time - p1.time
        if span <= 0:
            return 0.0
        return min(max((t - p1.time) / span, 0.0), 1.0)

    def _basis(self, u: float):
        #   [  0    1     0   0] 1
        #   [ -a    0     a   0] u
        #   [ 2a  a-3  3-2a  -a] u^2
        #   [ -a  2-a   a-2   a] u^3
        a = self.alpha
        u2 = u * u
        u3 = u2 * u
        return (
            -a * u3 + 2 * a * u2 - a * u,
            (2 - a) * u3 + (a - 3) * u2 + 1,
            (a - 2) * u3 + (3 - 2 * a) * u2 + a * u,
            a * u3 - a * u2,
        )

"""
Aircraft Track
Owns one aircraft's fix source, interpolator, bounded trail and flight
bookkeeping.
"""

from collections import deque
from typing import Any, Deque, Dict, Iterator, List, Optional

from ..config import Settings
from ..utils import (
    Averager,
    SpeedVector,
    haversine_distance,
    calculate_bearing,
)
from math import cos, sin, radians, sqrt
from .constants import DEFAULT_ALPHA, DEFAULT_V_ACCURACY_M, MIN_LIVE_ALTITUDE_M
from .interpolator import CatmullRomInterpolator, InterpolatedState, TrajectorySample
from .kinematics import TrailPoint
from .sources import SampleSource
from .visibility import EulerAngles, Aspect


class AircraftTrack:
    """
    Continuous-time model of one aircraft.

    The track pulls fixes from its source only as far as the interpolation
    window requires, then appends one reconstructed TrailPoint per step.

    Attributes:
        valid: Interpolated state at the current step is usable
        live: Aircraft has been airborne above the liveness altitude
        mark: Aircraft took part in an encounter finalised since the last display
        in_flock: Aircraft is a member of a qualifying flock disk
        penalty: Sum of (safety distance - minimum distance) over encounters
    """

    def __init__(
        self,
        source: SampleSource,
        index: int,
        alpha: float = DEFAULT_ALPHA,
        min_live_altitude: float = MIN_LIVE_ALTITUDE_M,
        v_accuracy: float = DEFAULT_V_ACCURACY_M,
        max_trail: int = Settings.MAX_TRAIL + 2,
        keep_trace: bool = False,
    ):
        """
        Initialize track.

        Args:
            source: Fix source for this aircraft
            index: Stable integer index within the fleet
            alpha: Catmull-Rom tension
            min_live_altitude: Baro altitude below which the aircraft is not live
            v_accuracy: Vertical position accuracy (1 sigma, meters)
            max_trail: Trail points kept for lookback
            keep_trace: Record the interpolated position at every step
        """
        self.source = source
        self.id = source.id
        self.index = index
        self.interpolator = CatmullRomInterpolator(alpha)
        self.min_live_altitude = min_live_altitude
        self.max_trail = max_trail
        self.keep_trace = keep_trace

        self.valid = False
        self.live = False
        self.mark = False
        self.in_flock = False
        self.n_encounters = 0
        self.penalty = 0.0
        self.h_acc = 0.0
        self.v_acc = v_accuracy
        self.euler = EulerAngles()

        self.interp_loc: Optional[InterpolatedState] = None
        self.interp_loc_last: Optional[InterpolatedState] = None
        self.trail: Deque[TrailPoint] = deque()
        self.trace: List[Dict[str, float]] = []

        self.reset()

    def reset(self) -> None:
        """Rewind the source and clear all per-run state."""
        self.source.rewind()
        self.interpolator.reset()
        self.trail.clear()
        self.trace = []
        self._source_ok = True

        self.flight_loc_start = None
        self.flight_time_start: Optional[float] = None
        self.flight_time_end: Optional[float] = None
        self.flight_num_records = 0
        self.alt_start = Averager()
        self.alt_end = Averager()
        self.baro_offset = 0.0
        self.baro_error = Averager()

    # --- Fix intake ---

    def _advance(self) -> None:
        """Pull one fix from the source into the interpolator."""
        if not self.source.next():
            self._source_ok = False
            return

        basic = self.source.basic
        calculated = self.source.calculated
        if not basic.location_available or not basic.gps_altitude_available:
            return

        self.h_acc = basic.h_accuracy

        if calculated.flying:
            if self.flight_time_start is None:
                self.flight_loc_start = (basic.latitude, basic.longitude)
                self.flight_time_start = basic.time
                if self.alt_start.empty():
                    self.alt_start.add(basic.gps_altitude)
            elif basic.ground_speed < Settings.LANDING_SPEED_MS and (
                haversine_distance(
                    basic.latitude, basic.longitude, *self.flight_loc_start
                )
                < Settings.LANDING_RADIUS_M
            ):
                self.alt_end.add(basic.gps_altitude)
                self.flight_time_end = basic.time
            self.flight_num_records += 1
        elif self.flight_time_start is not None:
            self.alt_end.add(basic.gps_altitude)
        else:
            self.baro_offset = basic.gps_altitude - basic.baro_altitude
            self.alt_start.add(basic.gps_altitude)

        baro_altitude = self._update_baro_altitude()

        self.interpolator.update(
            TrajectorySample(
                latitude=basic.latitude,
                longitude=basic.longitude,
                gps_altitude=basic.gps_altitude,
                baro_altitude=baro_altitude,
                time=basic.time,
            )
        )

    def _update_baro_altitude(self) -> float:
        """Calibrated baro altitude; slowly pulls the offset towards GPS."""
        basic = self.source.basic
        baro_altitude = basic.baro_altitude + self.baro_offset
        err = basic.gps_altitude - baro_altitude
        mix = (1 - Settings.MIX_BARO) * basic.gps_altitude + Settings.MIX_BARO * baro_altitude
        self.baro_error.add(
            (basic.gps_altitude - mix) ** 2 + (baro_altitude - mix) ** 2
        )
        self.baro_offset += Settings.ALPHA_BARO * err
        return baro_altitude

    # --- Time stepping ---

    def advance_to_start(self) -> Optional[int]:
        """
        Pull fixes until the aircraft is flying with a ready interpolator.

        Returns:
            Time of the first usable fix, or None if the data ran out first
        """
        self.source.calculated.estimated_wind = SpeedVector()

        while self._source_ok and (
            not self.interpolator.ready()
            or not self.source.calculated.flying
            or self.flight_time_start is None
        ):
            self._advance()

        if not self._source_ok:
            self.valid = False
            return None

        self.valid = True
        return int(self.source.basic.time)

    @property
    def max_time(self) -> int:
        """Latest fix time seen so far (0 before any data)."""
        if not self.interpolator.ready():
            return 0
        return int(self.interpolator.max_time)

    def advance_to_time(self, t: int) -> bool:
        """
        Advance the track to time ``t`` and reconstruct its state.

        Returns:
            True if the aircraft is valid and live at ``t``
        """
        self.valid = False
        if not self._source_ok or not self.interpolator.ready():
            return False
        if t < self.interpolator.min_time:
            return False

        while self.interpolator.need_data(t) and self._source_ok:
            self._advance()

        if self.interpolator.need_data(t):
            # data gap or end of data: nothing brackets t
            return False
        if not self.source.calculated.flying:
            return False

        self._interpolate(t, self.source.calculated.estimated_wind)

        if self.interp_loc.baro_altitude < self.min_live_altitude:
            self.valid = False
        else:
            self.live = True

        return self.valid and self.live

    def _interpolate(self, t: int, wind: SpeedVector) -> None:
        self.interp_loc_last = self.interp_loc
        self.interp_loc = self.interpolator.interpolate(t)

        point = TrailPoint(
            pos=self.interp_loc,
            trk=self.interpolator.get_vector(t),
            turn_mode=self.source.calculated.turn_mode,
            fix_acc=self.h_acc,
            actual=self.interpolator.is_actual(t),
        )
        point.update_reconstruction(self.trail[-1] if self.trail else None, wind)
        self.euler = EulerAngles(point.bank_angle, point.pitch_angle, point.yaw_angle)

        self.trail.append(point)
        while len(self.trail) > self.max_trail:
            self.trail.popleft()

        self.valid = True

        if self.keep_trace:
            self.trace.append(
                {
                    "t": t,
                    "latitude": round(self.interp_loc.latitude, 6),
                    "longitude": round(self.interp_loc.longitude, 6),
                    "gps_altitude": round(self.interp_loc.gps_altitude, 1),
                }
            )

    # --- Derived state ---

    @property
    def flying(self) -> bool:
        return self.source.calculated.flying

    @property
    def wind_available(self) -> bool:
        return self.source.calculated.estimated_wind_available

    @property
    def wind(self) -> SpeedVector:
        return self.source.calculated.estimated_wind

    def set_wind_if_not_available(self, wind_avg: SpeedVector) -> None:
        """Substitute a fleet wind where the aircraft has no estimate."""
        if not self.source.calculated.estimated_wind_available:
            self.source.calculated.estimated_wind = wind_avg

    def get_symbol(self) -> str:
        """One-character status for the progress strip."""
        if not self.flying:
            return " "
        if not self.valid:
            return "~"
        if not self.live:
            return "?"
        return "."

    # --- Visibility ---

    def get_aspect(self, target: "AircraftTrack") -> Aspect:
        """Aspect of ``target`` seen from this aircraft's current attitude."""
        a, b = self.interp_loc, target.interp_loc
        distance = haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)
        bearing = radians(calculate_bearing(a.latitude, a.longitude, b.latitude, b.longitude))
        x_inertial = (
            distance * cos(bearing),
            distance * sin(bearing),
            a.gps_altitude - b.gps_altitude,
        )
        return self.euler.get_aspect(x_inertial)

    def calc_aspect(self, target: "AircraftTrack", max_range: Optional[float] = None) -> bool:
        """
        Record the aspect of ``target`` on the newest trail point.

        Aspects are keyed by track index. Nothing is recorded when the target
        is further than ``max_range``.

        Returns:
            True if an aspect was recorded
        """
        if not self.trail:
            return False
        aspect = self.get_aspect(target)
        if max_range is not None and aspect.range > max_range:
            return False
        self.trail[-1].aspects[target.index] = aspect
        return True

    # --- Lookback ---

    def trail_window(self, t0: float, t1: float) -> Iterator[TrailPoint]:
        return (p for p in self.trail if p.within_time(t0, t1))

    def other_visible(self, t0: float, t1: float, target_index: int) -> bool:
        """True if track ``target_index`` was within visibility range during [t0, t1]."""
        return any(p.present(target_index) for p in self.trail_window(t0, t1))

    def turn_mode_list(self, t0: float, t1: float) -> List[str]:
        """Sequence of distinct consecutive turn modes during [t0, t1]."""
        modes: List[str] = []
        for p in self.trail_window(t0, t1):
            if not modes or modes[-1] != p.turn_mode:
                modes.append(p.turn_mode)
        return modes

    # --- Diagnostics ---

    def finalise(self) -> None:
        """Compute flight statistics once the run is over."""
        if not self.live:
            return
        self.alt_start.calculate()
        self.alt_end.calculate()
        self.baro_error.calculate()

    def flight_summary(self) -> Dict[str, Any]:
        """Per-aircraft flight-time diagnostics."""
        avg_timestep = 0.0
        if (
            self.flight_num_records > 1
            and self.flight_time_start is not None
            and self.flight_time_end is not None
        ):
            avg_timestep = max(
                0.0,
                (self.flight_time_end - self.flight_time_start - 1)
                / (self.flight_num_records - 1),
            )
        return {
            "id": self.id,
            "index": self.index,
            "type_info": self.source.type_info,
            "flight_time_start": self.flight_time_start,
            "flight_time_end": self.flight_time_end,
            "alt_start_m": round(self.alt_start.avg, 1),
            "alt_end_m": round(self.alt_end.avg, 1),
            "baro_error_m": round(sqrt(max(self.baro_error.avg, 0.0)), 1),
            "avg_timestep_s": round(avg_timestep, 1),
        }

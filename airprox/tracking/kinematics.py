"""
Kinematic Reconstruction
Best-effort airspeed and attitude estimates from position-only trajectories.

This is a heuristic good enough for collision geometry and visibility
purposes, not a flight-dynamics state estimator:

- air vector = ground track + wind (wind bearing is where it blows from)
- turn rate is a 50/50 damped change of air-relative bearing per step
- bank from the coordinated-turn relation tan(bank) = turn_rate * v / g
- sideslip offset from the lift coefficient implied by wing loading and bank
- pitch from the forward load factor, held when out of arcsin's domain
"""

from dataclasses import dataclass, field
from math import atan, asin, tan, sqrt, radians, pi
from typing import Dict, Optional, TYPE_CHECKING

from ..config import Constants, Settings
from ..utils import SpeedVector, wrap_radians
from .interpolator import InterpolatedState

if TYPE_CHECKING:
    from .visibility import Aspect

LIFT_CURVE_SLOPE = 2 * pi


def air_density(altitude_m: float) -> float:
    """ISA air density (kg/m^3) at an altitude."""
    altitude_m = min(altitude_m, 44000.0)
    return ((44330.8 - altitude_m) / 42266.5) ** (1.0 / 0.234969)


def air_density_ratio(altitude_m: float) -> float:
    """Ratio of true to indicated airspeed at an altitude."""
    return sqrt(Constants.RHO_SEA_LEVEL / air_density(altitude_m))


def _bearing_delta(v: SpeedVector, v_last: SpeedVector) -> float:
    """Signed change in bearing (radians), zero if either vector is null."""
    if not v.norm or not v_last.norm:
        return 0.0
    return wrap_radians(radians(v.bearing - v_last.bearing))


@dataclass
class TrailPoint:
    """
    Reconstructed kinematic state of one aircraft at one integer-second step.

    Angles are stored in radians, speeds in m/s.
    """

    pos: InterpolatedState
    trk: SpeedVector
    turn_mode: str = "cruise"
    fix_acc: float = 0.0
    actual: bool = False

    v_wind: SpeedVector = field(default_factory=SpeedVector)
    v_ias: float = 0.0
    turn_rate: float = 0.0
    bank_angle: float = 0.0
    pitch_angle: float = 0.0
    yaw_angle: float = 0.0
    nv: float = 0.0
    nturn: float = 0.0
    plausible: bool = True

    aspects: Dict[int, "Aspect"] = field(default_factory=dict)

    @property
    def time(self) -> float:
        return self.pos.time

    def within_time(self, t0: float, t1: float) -> bool:
        return t0 <= self.pos.time <= t1

    def present(self, target_index: int) -> bool:
        """True if an aspect towards track ``target_index`` was recorded."""
        return target_index in self.aspects

    def lookup_aspect(self, target_index: int) -> Optional["Aspect"]:
        return self.aspects.get(target_index)

    def update_reconstruction(
        self, prev: Optional["TrailPoint"], wind: SpeedVector
    ) -> None:
        """
        Derive air-relative kinematics from the previous step.

        Without a previous step only the air vector and airspeed are set.

        Args:
            prev: TrailPoint one step earlier, or None for the first point
            wind: Ambient wind (bearing the wind blows from)
        """
        self.v_wind = self.trk + wind
        self.v_ias = self.v_wind.norm / air_density_ratio(self.pos.gps_altitude)

        if prev is None:
            self.yaw_angle = wrap_radians(radians(self.v_wind.bearing))
            return

        # Double-differentiated positions are too jittery to use undamped
        self.turn_rate = (
            0.5 * _bearing_delta(self.v_wind, prev.v_wind) + 0.5 * prev.turn_rate
        )
        self.bank_angle = atan(self.turn_rate * self.v_wind.norm / Constants.G)

        slip = 0.0
        if self.v_ias > 0:
            slip = (
                Settings.WING_LOADING
                * Constants.G
                * tan(self.bank_angle)
                / (0.5 * Constants.RHO_SEA_LEVEL * self.v_ias ** 2 * LIFT_CURVE_SLOPE)
            )
        self.yaw_angle = wrap_radians(radians(self.v_wind.bearing) + slip)

        self.nv = (self.v_wind.norm - prev.v_wind.norm) / Constants.G
        if abs(self.nv) > Settings.ACCEL_MAX_PLAUSIBLE_G:
            self.plausible = False

        if abs(self.nv) < 1.0:
            self.pitch_angle = 0.5 * asin(-self.nv) + 0.5 * prev.pitch_angle
        else:
            self.pitch_angle = prev.pitch_angle

        self.nturn = abs(self.v_wind.norm * self.turn_rate / Constants.G)
        if self.nturn > Settings.NTURN_MAX_PLAUSIBLE_G:
            self.plausible = False

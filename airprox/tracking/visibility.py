"""
Visibility Model
Relative geometry of a target seen from an observer's cockpit.

Frames: inertial x north, y east, z down; body axes follow the aircraft's
reconstructed yaw, pitch and bank. The conspicuity rules are a declared
heuristic (occlusion cone aft, horizon band and forward cone where pilots
scan), not a vision-science model.
"""

from dataclasses import dataclass
from math import sin, cos, asin, acos, atan2, sqrt, radians
from typing import Sequence

from ..config import Settings


@dataclass
class Aspect:
    """Range and angles (radians) of a target relative to an observer."""

    range: float = -1.0
    elevation_angle: float = 0.0
    azimuth_angle: float = 0.0
    inclination_angle: float = 0.0


class EulerAngles:
    """
    Body-to-inertial attitude.

    Args:
        phi: Bank angle (radians)
        theta: Pitch angle (radians)
        psi: Yaw angle (radians)
    """

    def __init__(self, phi: float = 0.0, theta: float = 0.0, psi: float = 0.0):
        self.phi = phi
        self.theta = theta
        self.psi = psi

        sp, cp = sin(phi), cos(phi)
        st, ct = sin(theta), cos(theta)
        ss, cs = sin(psi), cos(psi)

        self.R = (
            (cs * ct, ct * ss, -st),
            (cs * sp * st - cp * ss, cp * cs + sp * ss * st, ct * sp),
            (sp * ss + cp * cs * st, cp * ss * st - cs * sp, cp * ct),
        )

    def get_aspect(self, x_inertial: Sequence[float]) -> Aspect:
        """
        Aspect of a target at ``x_inertial`` (north, east, down meters)
        relative to this observer.
        """
        x_body = [
            sum(self.R[i][j] * x_inertial[j] for j in range(3)) for i in range(3)
        ]
        rng = sqrt(sum(x * x for x in x_body))
        if rng <= 0:
            return Aspect(range=0.0)

        return Aspect(
            range=rng,
            elevation_angle=asin(max(-1.0, min(1.0, -x_body[2] / rng))),
            azimuth_angle=atan2(x_body[1], x_body[0]),
            inclination_angle=asin(max(-1.0, min(1.0, -x_inertial[2] / rng))),
        )


def boresight_angle(aspect: Aspect) -> float:
    """Angle between the observer's nose and the line of sight."""
    c = cos(aspect.elevation_angle) * cos(abs(aspect.azimuth_angle))
    return acos(max(-1.0, min(1.0, c)))


class Visibility:
    """
    Conspicuity of a target given its aspect.

    Attributes:
        angular_size: Apparent size of the target (radians)
        occlusion: 1 if hidden behind own structure, else 0
        focus_factor: 1 where the pilot is likely looking, else peripheral factor
    """

    def __init__(self, aspect: Aspect):
        self.angular_size = 2 * atan2(Settings.TARGET_SIZE_M / 2, aspect.range)
        half_size = self.angular_size / 2

        if abs(aspect.azimuth_angle) > radians(Settings.OCCLUSION_AZIMUTH_DEG) + half_size:
            self.occlusion = 1.0
        elif aspect.elevation_angle < radians(Settings.OCCLUSION_ELEVATION_DEG) - half_size:
            self.occlusion = 1.0
        else:
            self.occlusion = 0.0

        if abs(aspect.inclination_angle) < radians(Settings.HORIZON_BAND_DEG) + half_size:
            self.focus_factor = 1.0
        elif boresight_angle(aspect) < radians(Settings.FORWARD_CONE_DEG) + half_size:
            self.focus_factor = 1.0
        else:
            self.focus_factor = Settings.PERIPHERAL_FOCUS

    @property
    def score(self) -> float:
        """Focus-weighted visibility, zero when occluded."""
        return self.focus_factor * (1 - self.occlusion)

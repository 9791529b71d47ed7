"""
AIRPROX Tracking Component

Per-aircraft trajectory modelling: fix sources, spline interpolation,
kinematic reconstruction and visibility geometry.

Main Classes:
    - CatmullRomInterpolator: Continuous-time position from discrete fixes
    - TrailPoint: Reconstructed kinematic state at one step
    - EulerAngles / Visibility: Relative geometry and conspicuity
    - AircraftTrack: One aircraft's source, interpolator and trail
    - ListSampleSource / CsvSampleSource: Fix sources
    - FlightDatabase / TrajectoryReader: SQLite flight log storage

Example:
    >>> from airprox.tracking import CsvSampleSource, AircraftTrack
    >>> track = AircraftTrack(CsvSampleSource('logs/2023-07-01_D-KXYZ.csv'), 0)
    >>> t = track.advance_to_start()
"""

# Core tracking components
from .interpolator import CatmullRomInterpolator, TrajectorySample, InterpolatedState
from .kinematics import TrailPoint, air_density, air_density_ratio
from .visibility import Aspect, EulerAngles, Visibility
from .sources import (
    SampleSource,
    ListSampleSource,
    CsvSampleSource,
    NavState,
    DerivedState,
)
from .track import AircraftTrack
from .database import FlightDatabase
from .reader import TrajectoryReader

# Constants
from . import constants

__all__ = [
    # Interpolation
    "CatmullRomInterpolator",
    "TrajectorySample",
    "InterpolatedState",
    # Reconstruction
    "TrailPoint",
    "air_density",
    "air_density_ratio",
    # Visibility
    "Aspect",
    "EulerAngles",
    "Visibility",
    # Sources
    "SampleSource",
    "ListSampleSource",
    "CsvSampleSource",
    "NavState",
    "DerivedState",
    "AircraftTrack",
    # Storage
    "FlightDatabase",
    "TrajectoryReader",
    # Modules
    "constants",
]

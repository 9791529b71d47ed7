"""
AIRPROX - Aircraft Proximity Analysis

Offline analysis of multi-aircraft flight logs: reconstructs continuous
trajectories, detects statistically significant near-miss encounters
between aircraft and mines groups of aircraft flying together (flocks).

Components:
    - tracking: Fix sources, interpolation, kinematic reconstruction
    - analysis: Encounter detection, flock mining, reports
    - visualization: Interactive maps of the results

Example:
    >>> from airprox.analysis import FlightCollection
    >>> from airprox import Config
    >>> config = Config()
    >>> collection = FlightCollection.from_csv(['a_D-1234.csv', 'b_D-5678.csv'], config)
    >>> results = collection.run()
"""

# Component imports for easy access
from . import tracking
from . import analysis
from . import visualization
from . import utils
from . import config
from .config import Config

AIRPROX_VERSION = "v1.0.0"

__version__ = AIRPROX_VERSION
__author__ = "AIRPROX Project"
__license__ = "MIT"

__all__ = [
    "tracking",
    "analysis",
    "visualization",
    "utils",
    "config",
    "Config",
]

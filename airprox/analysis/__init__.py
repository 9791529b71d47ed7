"""
AIRPROX Analysis Component

Encounter detection and flock mining over a fleet of aircraft tracks.

Main Classes:
    - FlightCollection: Drives the fleet through time (orchestrator)
    - EncounterAnalyzer: Run an analysis and write its outputs
    - EncounterDetector: Pairwise statistical near-miss detection
    - FlockMiner: Disk-based flock pattern mining
    - StatisticsEngine: Penalties and run diagnostics
    - ReportGenerator: Multi-format report generation

Example:
    >>> from airprox.analysis import FlightCollection
    >>> collection = FlightCollection.from_database('data/airprox_flights.db')
    >>> results = collection.run()
"""

# Main analysis components
from .analyzer import FlightCollection, EncounterAnalyzer, AnalysisError
from .encounter_detector import (
    EncounterDetector,
    EncounterInfo,
    EncounterStore,
    expected_distance,
    cdf_normal,
)
from .flock_miner import FlockMiner, PSIAlgorithm, Point, IndexPoint, Disk, DiskNode, DiskStore
from .statistics import StatisticsEngine
from .reporter import ReportGenerator, write_outputs

# Utilities
from . import constants

__all__ = [
    # Main classes
    'FlightCollection',
    'EncounterAnalyzer',
    'AnalysisError',
    'EncounterDetector',
    'EncounterInfo',
    'EncounterStore',
    'FlockMiner',
    'PSIAlgorithm',
    'StatisticsEngine',
    'ReportGenerator',

    # Flock primitives
    'Point',
    'IndexPoint',
    'Disk',
    'DiskNode',
    'DiskStore',

    # Functions
    'expected_distance',
    'cdf_normal',
    'write_outputs',

    # Modules
    'constants',
]

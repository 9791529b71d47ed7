"""
Analysis Constants
"""

# Encounter detection
SAFETY_DISTANCE_M: float = 30.0  # Horizontal safety distance; vertical uses half
VISIBILITY_DISTANCE_M: float = 1000.0  # Aspects recorded only within this range
PROBABILITY_THRESHOLD: float = 0.2  # Minimum p_close for a sample to count
SCORE_BUFFER: int = 0  # Subtracted from penalties before scoring
VERTICAL_PREFILTER_FACTOR: float = 3.0  # Skip pairs vertically beyond 3x safety distance
DEFAULT_FLEET_H_ACCURACY_M: float = 5.0  # When no live aircraft reports accuracy

# Flock mining
FLOCK_EPSILON_M: float = 1000.0  # Disk radius
FLOCK_MU: int = 4  # Minimum members per disk
FLOCK_MIN_DURATION_S: int = 150  # Minimum chain duration to report
FLOCK_INTERVAL_S: int = 4  # Mining cadence
DISK_PRECISION: float = 0.001  # Tolerance for points on a disk boundary

# Status strip symbols
SYMBOL_ENCOUNTER = "#"
SYMBOL_FLOCK = "|"

"""
Tracking Constants
Defaults for trajectory reconstruction.
"""

# Catmull-Rom interpolation
DEFAULT_ALPHA = 0.5  # Spline tension
WINDOW_SIZE = 4  # Raw samples held by the interpolator
ACTUAL_TOLERANCE_S = 0.01  # Interpolation time within this of a fix counts as actual
VECTOR_HALF_SPAN_S = 0.25  # Finite-difference half-span for velocity estimation

# Position accuracy (1 sigma, meters)
DEFAULT_H_ACCURACY_M = 0.0  # 0 means "not reported", fleet average is used instead
DEFAULT_V_ACCURACY_M = 5.0

# Liveness
MIN_LIVE_ALTITUDE_M = 400.0  # Below this baro altitude an aircraft is not live

# Flying state derived from stored positions
MIN_FLYING_SPEED_MS = 10.0

# Circling modes reported by the turn-mode estimator
TURN_MODES = ("cruise", "entry", "circling", "exit")

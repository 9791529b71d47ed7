"""
AIRPROX Configuration Management

This module provides configuration management for the AIRPROX proximity
analysis system. It includes physical constants, fixed algorithm settings,
map colors, and runtime configuration loaded from YAML files.
"""

import os
from typing import Any, Dict, Optional

import yaml

# =============================================================================
# Physical Constants
# =============================================================================


class Constants:
    """Physical constants representing real-world measurements."""

    EARTH_RADIUS_M: float = 6371000.0  # Earth's radius for distance calculations
    METERS_TO_FEET: float = 3.28084  # Altitude conversion factor
    M_PER_DEGREE_LAT: float = 111320.0  # Distance per degree latitude at equator
    G: float = 9.81  # Gravitational acceleration (m/s^2)
    RHO_SEA_LEVEL: float = 1.225  # ISA sea level air density (kg/m^3)


# =============================================================================
# Algorithm Settings
# =============================================================================


class Settings:
    """Fixed settings for trajectory reconstruction and encounter analysis."""

    # --- Trail windows (seconds) ---
    TYP_TRAIL: int = 20  # Lead-in window reported before an encounter
    MAX_TRAIL: int = 3 * TYP_TRAIL  # Hard maximum encounter lifetime
    HYS_TRAIL: int = 15  # Hysteresis before an encounter is finalised

    # --- Encounter statistics ---
    SIGMA_LIMIT: float = 2.5  # Pairs further than this many sigma are skipped
    EXPECTED_DISTANCE_STEP_M: float = 0.5  # Integration step for expected distance

    # --- Kinematic plausibility ---
    ACCEL_MAX_PLAUSIBLE_G: float = 1.2  # Max plausible forward acceleration (g)
    NTURN_MAX_PLAUSIBLE_G: float = 10.0  # Max plausible turn acceleration (g)
    WING_LOADING: float = 50.0  # Nominal wing loading (kg/m^2)

    # --- Barometric calibration ---
    ALPHA_BARO: float = 0.05  # Baro offset adaptation rate
    MIX_BARO: float = 0.5  # GPS/baro mixing weight for error statistics

    # --- Flight start/end detection ---
    LANDING_SPEED_MS: float = 20.0  # Below this speed near the start, aircraft has landed
    LANDING_RADIUS_M: float = 2500.0  # Radius around start location counting as landed

    # --- Visibility heuristic ---
    TARGET_SIZE_M: float = 10.0  # Assumed physical target span
    OCCLUSION_AZIMUTH_DEG: float = 140.0  # Targets further aft are hidden by structure
    OCCLUSION_ELEVATION_DEG: float = -20.0  # Targets further below are hidden
    HORIZON_BAND_DEG: float = 20.0  # Band around horizon pilots scan
    FORWARD_CONE_DEG: float = 30.0  # Forward cone pilots scan
    PERIPHERAL_FOCUS: float = 0.5  # Focus factor outside the scanned areas

    # --- Flock reporting ---
    FLOCK_TRACE_DECIMATION: int = 15  # Report every Nth disk of a chain

    # --- Visualization ---
    DEFAULT_MAP_STYLE: str = "CartoDB.Positron"  # Base map tile style
    DEFAULT_ZOOM: int = 12  # Initial map zoom level
    TRACK_WEIGHT: int = 2  # Track line thickness
    TRACK_OPACITY: float = 0.6  # Track transparency (0-1)
    MARKER_OPACITY: float = 0.8  # Marker border transparency (0-1)
    MARKER_FILL_OPACITY: float = 0.4  # Marker fill transparency (0-1)


# =============================================================================
# Color Schemes
# =============================================================================


class Colors:
    """Color definitions for visualizations."""

    # Encounter probability color coding (hex colors)
    PROBABILITY_COLORS: Dict[str, str] = {
        "low": "#f5e663",  # Yellow: p < 0.5
        "medium": "#ff7a18",  # Orange: 0.5 <= p < 0.9
        "high": "#ff3b3b",  # Red: p >= 0.9
    }

    # Flock trace colors (cycled)
    FLOCK_COLORS = [
        "#7c3aed",
        "#00b4ff",
        "#00e5a8",
        "#e74c3c",
        "#f17c15",
    ]

    TRACK_COLOR: str = "#3498db"  # Default track color (blue)


# =============================================================================
# Runtime Configuration
# =============================================================================


class Config:
    """
    Runtime configuration manager for AIRPROX.

    Loads settings from YAML files or uses sensible defaults.
    Provides property-based access to the analysis thresholds.

    Example:
        >>> config = Config('airprox.yaml')
        >>> print(f"Safety distance {config.safety_distance} m")
        >>> print(f"Flock: eps={config.flock_epsilon} m, mu={config.flock_mu}")
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file. If None or missing,
                        uses default configuration.
        """
        self.config_path = config_path
        self._config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file or return defaults.

        Sections missing from the file are filled in from the defaults.

        Returns:
            Configuration dictionary
        """
        if self.config_path is None or not os.path.exists(self.config_path):
            return self._get_default_config()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Warning: Could not load config file: {e}")
            return self._get_default_config()

        if not isinstance(config, dict):
            print("Warning: Invalid config structure, using defaults")
            return self._get_default_config()

        merged = self._get_default_config()
        for section, values in config.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values

        if self._validate_config(merged):
            return merged

        print("Warning: Invalid config structure, using defaults")
        return self._get_default_config()

    def _validate_config(self, config: Dict[str, Any]) -> bool:
        """
        Validate configuration structure and value ranges.

        Args:
            config: Configuration dictionary to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            encounter = config["encounter"]
            assert isinstance(encounter["safety_distance_m"], (float, int))
            assert encounter["safety_distance_m"] > 0
            assert isinstance(encounter["visibility_distance_m"], (float, int))
            assert encounter["visibility_distance_m"] > 0
            assert isinstance(encounter["probability_threshold"], (float, int))
            assert 0 < encounter["probability_threshold"] < 1
            assert isinstance(encounter["score_buffer"], (float, int))
            assert encounter["default_h_accuracy_m"] > 0
            assert encounter["default_v_accuracy_m"] > 0

            flock = config["flock"]
            assert isinstance(flock["epsilon_m"], (float, int))
            assert flock["epsilon_m"] > 0
            assert isinstance(flock["mu"], int)
            assert flock["mu"] >= 2
            assert flock["min_duration_s"] >= 0
            assert isinstance(flock["interval_s"], int)
            assert flock["interval_s"] >= 1

            tracking = config["tracking"]
            assert 0 <= tracking["interpolation_alpha"] <= 1
            assert isinstance(tracking["min_live_altitude_m"], (float, int))

            output = config["output"]
            assert isinstance(output["directory"], str)
            assert output["display_interval_s"] >= 1

            return True
        except (AssertionError, KeyError, TypeError):
            return False

    def _get_default_config(self) -> Dict[str, Any]:
        """
        Get default configuration.

        Returns:
            Default configuration dictionary
        """
        return {
            "encounter": {
                "safety_distance_m": 30.0,
                "visibility_distance_m": 1000.0,
                "probability_threshold": 0.2,
                "score_buffer": 0,
                "default_h_accuracy_m": 5.0,
                "default_v_accuracy_m": 5.0,
            },
            "flock": {
                "epsilon_m": 1000.0,
                "mu": 4,
                "min_duration_s": 150,
                "interval_s": 4,
            },
            "tracking": {
                "interpolation_alpha": 0.5,
                "min_live_altitude_m": 400.0,
            },
            "output": {
                "directory": "output",
                "display_interval_s": 300,
            },
        }

    def save_config(self) -> None:
        """
        Save current configuration to YAML file.

        Raises:
            ValueError: If config_path is not set
        """
        if self.config_path is None:
            raise ValueError("Cannot save config: no config_path specified")

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self._config, f, default_flow_style=False)

    # --- Property Accessors ---

    @property
    def safety_distance(self) -> float:
        """Get encounter safety distance in meters."""
        return float(self._config["encounter"]["safety_distance_m"])

    @property
    def visibility_distance(self) -> float:
        """Get visibility distance threshold in meters."""
        return float(self._config["encounter"]["visibility_distance_m"])

    @property
    def probability_threshold(self) -> float:
        """Get proximity probability threshold (0-1)."""
        return float(self._config["encounter"]["probability_threshold"])

    @property
    def score_buffer(self) -> int:
        """Get penalty buffer subtracted before scoring."""
        return int(self._config["encounter"]["score_buffer"])

    @property
    def default_h_accuracy(self) -> float:
        """Get fallback horizontal position accuracy (1 sigma, meters)."""
        return float(self._config["encounter"]["default_h_accuracy_m"])

    @property
    def default_v_accuracy(self) -> float:
        """Get fallback vertical position accuracy (1 sigma, meters)."""
        return float(self._config["encounter"]["default_v_accuracy_m"])

    @property
    def flock_epsilon(self) -> float:
        """Get flock disk radius in meters."""
        return float(self._config["flock"]["epsilon_m"])

    @property
    def flock_mu(self) -> int:
        """Get minimum flock membership."""
        return int(self._config["flock"]["mu"])

    @property
    def flock_min_duration(self) -> int:
        """Get minimum flock duration in seconds."""
        return int(self._config["flock"]["min_duration_s"])

    @property
    def flock_interval(self) -> int:
        """Get flock mining cadence in seconds."""
        return int(self._config["flock"]["interval_s"])

    @property
    def interpolation_alpha(self) -> float:
        """Get Catmull-Rom tension parameter."""
        return float(self._config["tracking"]["interpolation_alpha"])

    @property
    def min_live_altitude(self) -> float:
        """Get minimum baro altitude for an aircraft to be live (meters)."""
        return float(self._config["tracking"]["min_live_altitude_m"])

    @property
    def output_dir(self) -> str:
        """Get report output directory."""
        return self._config["output"]["directory"]

    @property
    def display_interval(self) -> int:
        """Get status strip interval in seconds."""
        return int(self._config["output"]["display_interval_s"])

    # --- Generic Accessors ---

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., 'flock.epsilon_m')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('encounter.safety_distance_m', 30)
            30.0
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., 'flock.mu')
            value: Value to set

        Example:
            >>> config.set('flock.mu', 3)
        """
        keys = key.split(".")
        config = self._config

        # Navigate to parent of target key
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

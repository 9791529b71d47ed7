"""
Visualization Constants
"""

# Map configuration
MAP_TILE_URLS = {
    "CartoDB.DarkMatter": "https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png",
    "CartoDB.Positron": "https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}{r}.png",
    "OpenStreetMap": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
}

# Probability classes for encounter markers
PROBABILITY_MEDIUM = 0.5
PROBABILITY_HIGH = 0.9

# Marker styles
FLOCK_MARKER_RADIUS = 5
FLOCK_LINE_WEIGHT = 4
ENCOUNTER_MIN_RADIUS_M = 30  # Circles smaller than this are hard to click

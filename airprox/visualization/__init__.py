"""
AIRPROX Visualization Component

Interactive map visualizations of analysis results.

Main Classes:
    - MapGenerator: Folium maps of tracks, encounters and flocks

Example:
    >>> from airprox.visualization import MapGenerator
    >>> generator = MapGenerator.from_results(results)
    >>> generator.add_results(results)
    >>> generator.save('output/airprox_map.html')

Map Styles:
    - CartoDB.Positron (default)
    - CartoDB.DarkMatter
    - OpenStreetMap
"""

# Main visualization components
from .map_generator import MapGenerator

# Utilities
from . import constants

__all__ = [
    # Main classes
    "MapGenerator",
    # Modules
    "constants",
]

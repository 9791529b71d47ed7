"""
Map Generator
Creates interactive Folium maps of tracks, encounters and flocks.
"""

import folium
from typing import Dict, Any, List, Optional

from airprox.config import Settings, Colors
from airprox.utils import format_duration
from .constants import (
    MAP_TILE_URLS,
    PROBABILITY_MEDIUM,
    PROBABILITY_HIGH,
    FLOCK_MARKER_RADIUS,
    FLOCK_LINE_WEIGHT,
    ENCOUNTER_MIN_RADIUS_M,
)


class MapGenerator:
    """
    Generates interactive maps using Folium.

    Supports visualization of:
    - Aircraft tracks (interpolated traces)
    - Encounter locations, sized by the safety distance
    - Flock center traces
    """

    def __init__(
        self,
        center_lat: float,
        center_lon: float,
        zoom: int = Settings.DEFAULT_ZOOM,
        style: str = Settings.DEFAULT_MAP_STYLE,
    ):
        """
        Initialize map generator.

        Args:
            center_lat: Center latitude (analysis reference point)
            center_lon: Center longitude (analysis reference point)
            zoom: Initial zoom level (default: 12)
            style: Map style/theme (default: CartoDB.Positron)
        """
        self.center_lat = center_lat
        self.center_lon = center_lon
        self.zoom = zoom
        self.style = style

        # Create base map
        self.map = self._create_base_map()

    @classmethod
    def from_results(cls, results: Dict[str, Any], **kwargs) -> "MapGenerator":
        """Map centred on the reference point of an analysis run."""
        reference = results["metadata"]["reference"]
        return cls(reference["latitude"], reference["longitude"], **kwargs)

    def _create_base_map(self) -> folium.Map:
        """Create base Folium map."""

        if self.style in MAP_TILE_URLS:
            tiles = MAP_TILE_URLS[self.style]
        else:
            tiles = self.style

        m = folium.Map(
            location=[self.center_lat, self.center_lon],
            zoom_start=self.zoom,
            tiles=tiles,
            attr="AIRPROX Proximity Analysis",
        )

        return m

    def add_track(self, aircraft_id: str, trace: List[Dict[str, Any]],
                  color: Optional[str] = None):
        """
        Add an aircraft track to the map.

        Args:
            aircraft_id: Aircraft id shown in the tooltip
            trace: List of points with latitude/longitude
            color: Line color (default: Colors.TRACK_COLOR)
        """
        coords = [
            [p["latitude"], p["longitude"]]
            for p in trace
            if p.get("latitude") is not None and p.get("longitude") is not None
        ]
        if len(coords) < 2:
            return

        folium.PolyLine(
            coords,
            color=color or Colors.TRACK_COLOR,
            weight=Settings.TRACK_WEIGHT,
            opacity=Settings.TRACK_OPACITY,
            tooltip=aircraft_id,
        ).add_to(self.map)

    def add_encounter(self, encounter: Dict[str, Any]):
        """
        Add an encounter marker at its closest point.

        Args:
            encounter: Encounter report (latitude, longitude, d_min,
                d_threshold, p_close, aircraft_ids, ...)
        """
        color = self._get_probability_color(encounter["p_close"])
        radius = max(encounter.get("d_threshold", 0), ENCOUNTER_MIN_RADIUS_M)

        folium.Circle(
            location=[encounter["latitude"], encounter["longitude"]],
            radius=radius,
            color=color,
            opacity=Settings.MARKER_OPACITY,
            fill=True,
            fill_color=color,
            fill_opacity=Settings.MARKER_FILL_OPACITY,
            popup=folium.Popup(self._create_encounter_popup(encounter), max_width=300),
            tooltip=" / ".join(encounter["aircraft_ids"]),
        ).add_to(self.map)

    def _create_encounter_popup(self, encounter: Dict[str, Any]) -> str:
        """
        Create HTML popup for an encounter.

        Args:
            encounter: Encounter report

        Returns:
            HTML string for popup
        """
        time_pred = encounter.get("time_pred")
        time_pred_text = f"{time_pred:.1f} s" if time_pred is not None else "-"

        html = f"""
        <div style='font-family: Arial; min-width: 200px;'>
            <h4 style='margin: 0 0 10px 0; color: #667eea;'>
                ⚠️ Encounter #{encounter['id']}
            </h4>
            <table style='width: 100%; border-collapse: collapse;'>
                <tr><td><b>Aircraft:</b></td><td>{' / '.join(encounter['aircraft_ids'])}</td></tr>
                <tr><td><b>Time:</b></td><td>{encounter['time_start']} - {encounter['time_end']}</td></tr>
                <tr><td><b>Min distance:</b></td><td>{encounter['d_min']:.1f} m</td></tr>
                <tr><td><b>Probability:</b></td><td>{encounter['p_close']:.2f}</td></tr>
                <tr><td><b>Closing speed:</b></td><td>{encounter['v_max']:.1f} m/s</td></tr>
                <tr><td><b>Time to CPA:</b></td><td>{time_pred_text}</td></tr>
            </table>
        </div>
        """
        return html

    def add_flock(self, flock: Dict[str, Any], index: int = 0):
        """
        Add a flock center trace.

        Args:
            flock: Flock report with trace of (t, latitude, longitude, members)
            index: Flock number, selects the color
        """
        trace = flock.get("trace", [])
        if not trace:
            return

        color = Colors.FLOCK_COLORS[index % len(Colors.FLOCK_COLORS)]
        coords = [[p["latitude"], p["longitude"]] for p in trace]
        tooltip = (
            f"Flock #{flock['id']} ({format_duration(flock['duration'])}, "
            f"{flock['av_size']:.1f} aircraft)"
        )

        if len(coords) > 1:
            folium.PolyLine(
                coords,
                color=color,
                weight=FLOCK_LINE_WEIGHT,
                opacity=Settings.TRACK_OPACITY,
                tooltip=tooltip,
            ).add_to(self.map)

        for p in trace:
            folium.CircleMarker(
                location=[p["latitude"], p["longitude"]],
                radius=FLOCK_MARKER_RADIUS,
                color=color,
                fill=True,
                fill_opacity=Settings.MARKER_FILL_OPACITY,
                popup=f"t={p['t']}: {', '.join(p['members'])}",
            ).add_to(self.map)

    def add_results(self, results: Dict[str, Any]):
        """Add every trace, encounter and flock of an analysis run."""
        for aircraft_id, trace in results.get("traces", {}).items():
            self.add_track(aircraft_id, trace)
        for encounter in results.get("encounters", []):
            self.add_encounter(encounter)
        for i, flock in enumerate(results.get("flocks", [])):
            self.add_flock(flock, i)

    def _get_probability_color(self, probability: float) -> str:
        """
        Get color based on infringement probability.

        Args:
            probability: Probability the safety distance was infringed

        Returns:
            Color hex code
        """
        if probability < PROBABILITY_MEDIUM:
            return Colors.PROBABILITY_COLORS["low"]
        elif probability < PROBABILITY_HIGH:
            return Colors.PROBABILITY_COLORS["medium"]
        else:
            return Colors.PROBABILITY_COLORS["high"]

    def save(self, filename: str):
        """
        Save map to HTML file.

        Args:
            filename: Output filename (should end in .html)
        """
        self.map.save(filename)

        # Modify HTML file to include title
        with open(filename, "r", encoding="utf-8") as f:
            html_content = f.read()
        insert = "<head>\n    <title>AIRPROX Map</title>"
        html_content = html_content.replace("<head>", insert, 1)
        with open(filename, "w", encoding="utf-8") as f:
            f.write(html_content)

        print(f"✅ Map saved to: {filename}")

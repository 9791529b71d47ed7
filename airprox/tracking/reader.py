"""
AIRPROX Trajectory Reader
Load stored flight logs as sample sources for the analysis.
"""

import sqlite3
from typing import List, Dict, Any

from .constants import MIN_FLYING_SPEED_MS
from .sources import ListSampleSource


class TrajectoryReader:
    """Read flight logs from an AIRPROX database."""

    def __init__(self, db_path: str):
        """
        Initialize reader.

        Args:
            db_path: Path to database file
        """
        self.db_path = db_path
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def get_flights(self, min_positions: int = 4) -> List[Dict[str, Any]]:
        """Flights with at least ``min_positions`` fixes."""
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT f.id, f.icao24, f.callsign, f.aircraft_type,
                   COUNT(p.id) as position_count
            FROM flights f
            JOIN positions p ON f.id = p.flight_id
            GROUP BY f.id
            HAVING position_count >= ?
            ORDER BY f.id
        ''', (min_positions,))
        return [dict(row) for row in cursor.fetchall()]

    def get_records(self, flight_id: int) -> List[Dict[str, Any]]:
        """Fix records of one flight in the format ListSampleSource takes."""
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT * FROM positions
            WHERE flight_id = ?
            ORDER BY timestamp
        ''', (flight_id,))
        return [self._to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def _to_record(row: sqlite3.Row) -> Dict[str, Any]:
        velocity = row['velocity_ms']
        gps_altitude = row['geo_altitude_m']
        if gps_altitude is None:
            gps_altitude = row['altitude_m']

        record: Dict[str, Any] = {
            'time': float(row['timestamp']),
            'latitude': row['latitude'],
            'longitude': row['longitude'],
            'gps_altitude': gps_altitude,
            'baro_altitude': row['altitude_m'],
            'flying': not row['on_ground'] and (
                velocity is None or velocity >= MIN_FLYING_SPEED_MS
            ),
        }
        if velocity is not None:
            record['ground_speed'] = velocity
        if row['h_accuracy_m'] is not None:
            record['h_accuracy'] = row['h_accuracy_m']
        return record

    def load_sources(self, min_positions: int = 4) -> List[ListSampleSource]:
        """
        Build one sample source per stored flight.

        Args:
            min_positions: Skip flights with fewer fixes than this

        Returns:
            List of sources ordered by flight id
        """
        sources = []
        for flight in self.get_flights(min_positions):
            label = flight['callsign'] or flight['icao24']
            sources.append(
                ListSampleSource(
                    label,
                    self.get_records(flight['id']),
                    type_info=flight['aircraft_type'] or '',
                )
            )
        return sources

"""
AIRPROX Flight Database
SQLite storage for per-aircraft flight logs.
"""

import sqlite3
from pathlib import Path
from typing import Optional, List, Dict, Any


class FlightDatabase:
    """Manages SQLite database for flight log storage."""

    def __init__(self, db_path: str):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._ensure_data_directory()
        self.init_database()

    def _ensure_data_directory(self):
        """Ensure the data directory exists."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def init_database(self):
        """Initialize database with required tables and indexes."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        # One entry per logged flight
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS flights (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                icao24 TEXT NOT NULL,
                callsign TEXT,
                aircraft_type TEXT,
                position_count INTEGER DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        # Fixes, timestamp in seconds
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS positions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                flight_id INTEGER NOT NULL,
                timestamp REAL NOT NULL,
                latitude REAL,
                longitude REAL,
                altitude_m REAL,
                geo_altitude_m REAL,
                velocity_ms REAL,
                heading REAL,
                on_ground BOOLEAN,
                h_accuracy_m REAL,
                FOREIGN KEY (flight_id) REFERENCES flights(id) ON DELETE CASCADE
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_flights_icao24 ON flights(icao24)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_positions_flight_id ON positions(flight_id)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_positions_timestamp ON positions(timestamp)')

        conn.commit()
        conn.close()

    def add_flight(self, icao24: str, callsign: Optional[str] = None,
                   aircraft_type: Optional[str] = None) -> int:
        """
        Create a flight entry.

        Args:
            icao24: Aircraft identifier
            callsign: Flight callsign
            aircraft_type: Free-text type information

        Returns:
            Flight ID
        """
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()
        cursor.execute('''
            INSERT INTO flights (icao24, callsign, aircraft_type)
            VALUES (?, ?, ?)
        ''', (icao24, callsign, aircraft_type))
        flight_id = cursor.lastrowid
        conn.commit()
        conn.close()
        return flight_id

    def add_position(self, flight_id: int, position: Dict[str, Any]):
        """
        Add a fix to a flight.

        Args:
            flight_id: Flight ID
            position: Fix with keys timestamp, latitude, longitude, altitude_m,
                geo_altitude_m, velocity_ms, heading, on_ground, h_accuracy_m
        """
        self.add_positions(flight_id, [position])

    def add_positions(self, flight_id: int, positions: List[Dict[str, Any]]):
        """Add many fixes to a flight in one transaction."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.executemany('''
            INSERT INTO positions (
                flight_id, timestamp, latitude, longitude, altitude_m,
                geo_altitude_m, velocity_ms, heading, on_ground, h_accuracy_m
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ''', [
            (
                flight_id,
                p['timestamp'],
                p.get('latitude'),
                p.get('longitude'),
                p.get('altitude_m'),
                p.get('geo_altitude_m'),
                p.get('velocity_ms'),
                p.get('heading'),
                p.get('on_ground', False),
                p.get('h_accuracy_m'),
            )
            for p in positions
        ])

        cursor.execute('''
            UPDATE flights SET position_count = position_count + ?
            WHERE id = ?
        ''', (len(positions), flight_id))

        conn.commit()
        conn.close()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get overall database statistics.

        Returns:
            Dictionary with statistical data
        """
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute('''
            SELECT
                COUNT(DISTINCT f.id) as total_flights,
                COUNT(DISTINCT f.icao24) as unique_aircraft,
                COUNT(p.id) as total_positions,
                MIN(p.timestamp) as first_fix,
                MAX(p.timestamp) as last_fix
            FROM flights f
            LEFT JOIN positions p ON f.id = p.flight_id
        ''')

        row = cursor.fetchone()
        conn.close()

        return {
            'total_flights': row[0] or 0,
            'unique_aircraft': row[1] or 0,
            'total_positions': row[2] or 0,
            'first_fix': row[3],
            'last_fix': row[4],
        }

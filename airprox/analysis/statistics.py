"""
Statistical Analysis Engine
Per-aircraft penalties and run-level diagnostics.
"""

from math import sqrt
from typing import Dict, Any, List, Sequence

from ..utils import Averager
from .constants import SCORE_BUFFER


class StatisticsEngine:
    """
    Summary statistics over the tracks of a finished run.

    Only live aircraft (those that were airborne above the liveness
    altitude at some point) are reported.
    """

    def __init__(self, tracks: Sequence):
        """
        Initialize statistics engine.

        Args:
            tracks: AircraftTrack instances of the run
        """
        self.tracks = tracks

    def _live(self):
        return [t for t in self.tracks if t.live]

    def get_comprehensive_stats(
        self,
        num_flightsecs: int = 0,
        time_close: int = 0,
        alt_max: float = 0.0,
        score_buffer: int = SCORE_BUFFER,
    ) -> Dict[str, Any]:
        """Get complete statistical overview."""
        return {
            'summary': self.summary(num_flightsecs, time_close, alt_max),
            'penalties': self.penalties(),
            'scoring_penalties': self.scoring_penalties(score_buffer),
            'flight_times': self.flight_times(),
        }

    def penalties(self) -> List[Dict[str, Any]]:
        """Sum of (safety distance - minimum distance) per aircraft."""
        return [
            {
                'id': t.id,
                'index': t.index,
                'penalty': round(t.penalty, 1),
                'n_encounters': t.n_encounters,
            }
            for t in self._live()
        ]

    def scoring_penalties(self, score_buffer: int = SCORE_BUFFER) -> List[Dict[str, Any]]:
        """
        Penalties to apply when scoring.

        The buffer is subtracted from the truncated penalty; only positive
        results are listed.
        """
        scores = []
        for t in self._live():
            score = int(t.penalty) - score_buffer
            if score > 0:
                scores.append({'id': t.id, 'penalty': score})
        return scores

    def summary(self, num_flightsecs: int, time_close: int, alt_max: float) -> Dict[str, Any]:
        return {
            'num_flightsecs': num_flightsecs,
            'num_aircraft': len(self._live()),
            'time_close': time_close,
            'alt_max': int(alt_max),
        }

    def flight_times(self) -> List[Dict[str, Any]]:
        """Per-aircraft flight-time diagnostics."""
        return [t.flight_summary() for t in self._live()]

    def fleet_baro_error(self) -> float:
        """RMS baro error over all live aircraft (meters)."""
        baro_error = Averager()
        for t in self._live():
            baro_error.add(t.baro_error)
        if not baro_error.calculate():
            return 0.0
        return sqrt(max(baro_error.avg, 0.0))

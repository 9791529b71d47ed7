"""
Main Proximity Analyzer
Drives the fleet through time and coordinates all analysis components.
"""

from datetime import datetime
from typing import Dict, Any, List, Optional, Sequence

from ..config import Config
from ..utils import FlatProjection, SpeedVector, average_vectors
from ..tracking.sources import SampleSource, CsvSampleSource
from ..tracking.database import FlightDatabase
from ..tracking.reader import TrajectoryReader
from ..tracking.track import AircraftTrack
from .encounter_detector import EncounterDetector
from .flock_miner import FlockMiner, IndexPoint, Point
from .statistics import StatisticsEngine
from .reporter import write_outputs
from .constants import SYMBOL_ENCOUNTER, SYMBOL_FLOCK


class AnalysisError(Exception):
    """Raised when a batch analysis cannot produce any result."""


class FlightCollection:
    """
    Fleet of aircraft tracks analysed together over a common time axis.

    Each one-second step advances every track, substitutes a fleet wind
    where an aircraft has none, records visibility aspects, tests all pairs
    for encounters and, every ``flock.interval_s`` seconds, mines flocks.

    Example:
        >>> collection = FlightCollection.from_csv(['a_D-1234.csv', 'b_D-5678.csv'])
        >>> results = collection.run()
        >>> len(results['encounters'])
    """

    def __init__(
        self,
        sources: Sequence[SampleSource],
        config: Optional[Config] = None,
        keep_traces: bool = False,
        verbose: bool = True,
    ):
        """
        Initialize collection.

        Args:
            sources: One fix source per aircraft
            config: Analysis configuration (defaults if None)
            keep_traces: Record every aircraft's interpolated trace
            verbose: Print progress and the status strip
        """
        self.config = config or Config()
        self.verbose = verbose
        self.keep_traces = keep_traces

        self.tracks: List[AircraftTrack] = [
            AircraftTrack(
                source,
                index,
                alpha=self.config.interpolation_alpha,
                min_live_altitude=self.config.min_live_altitude,
                v_accuracy=self.config.default_v_accuracy,
                keep_trace=keep_traces,
            )
            for index, source in enumerate(sources)
        ]

        self.detector = EncounterDetector(
            safety_distance=self.config.safety_distance,
            visibility_distance=self.config.visibility_distance,
            probability_threshold=self.config.probability_threshold,
            default_h_accuracy=self.config.default_h_accuracy,
        )
        self.miner: Optional[FlockMiner] = None
        self.projection: Optional[FlatProjection] = None

        self.t_start: Optional[int] = None
        self.t_end = 0
        self.num_flightsecs = 0
        self.alt_max = 0.0
        self.alt_min = 0.0
        self._first = True
        self.display_interval = self.config.display_interval

    @classmethod
    def from_csv(cls, paths: Sequence[str], config: Optional[Config] = None, **kwargs):
        """Collection over one CSV log per aircraft."""
        return cls([CsvSampleSource(p) for p in paths], config, **kwargs)

    @classmethod
    def from_database(cls, db_path: str, config: Optional[Config] = None, **kwargs):
        """Collection over every flight stored in a database."""
        if kwargs.get("verbose", True):
            stats = FlightDatabase(db_path).get_statistics()
            print(
                f"📂 Database: {stats['total_flights']} flights, "
                f"{stats['total_positions']:,} fixes"
            )

        reader = TrajectoryReader(db_path)
        try:
            sources = reader.load_sources()
        finally:
            reader.close()
        return cls(sources, config, **kwargs)

    # --- Time stepping ---

    def advance_to_start(self) -> bool:
        """
        Bring every track to its first flying fix.

        Returns:
            True if at least one aircraft is flying
        """
        self.num_flightsecs = 0
        self.t_start = None
        self.t_end = 0

        for track in self.tracks:
            track.reset()
            t = track.advance_to_start()
            if t is None:
                continue
            if self.t_start is None or t < self.t_start:
                self.t_start = t
            self.t_end = max(self.t_end, track.max_time)

        return self.t_start is not None

    def advance_to_time(self, t: int) -> None:
        """Advance all tracks to ``t`` and share a fleet wind."""
        winds: List[SpeedVector] = []

        for track in self.tracks:
            ok = track.advance_to_time(t)
            self.t_end = max(self.t_end, track.max_time)
            if not ok:
                continue

            self.num_flightsecs += 1
            if track.wind_available:
                winds.append(track.wind)

            altitude = track.interp_loc.gps_altitude
            if self._first:
                self.alt_max = self.alt_min = altitude
                self._first = False
            else:
                self.alt_max = max(self.alt_max, altitude)
                self.alt_min = min(self.alt_min, altitude)

        if winds:
            wind_avg = average_vectors(winds)
            for track in self.tracks:
                track.set_wind_if_not_available(wind_avg)

    def process(self, t: int) -> None:
        """Run one time step."""
        self.advance_to_time(t)
        self.detector.visibility_update(self.tracks)
        self.detector.encounter_update(t, self.tracks)
        if t % self.config.flock_interval == 0:
            self.flock_update(t)
        self.detector.erase_expired(t, self.tracks)

    def flock_update(self, t: int) -> None:
        """Mine flocks over the projected positions of live tracks."""
        points = []
        for track in self.tracks:
            if not (track.live and track.valid):
                continue
            x, y = self.projection.project(
                track.interp_loc.latitude, track.interp_loc.longitude
            )
            points.append(IndexPoint(Point(x, y), track.index))

        self.miner.process_time(t, points)
        self.miner.mark_in_flock(self.tracks)

    def _reference_location(self):
        starts = [t.flight_loc_start for t in self.tracks if t.flight_loc_start is not None]
        lat = sum(s[0] for s in starts) / len(starts)
        lon = sum(s[1] for s in starts) / len(starts)
        return lat, lon

    # --- Run ---

    def run(self) -> Dict[str, Any]:
        """
        Analyse the whole fleet.

        Returns:
            Results dictionary (metadata, encounters, flocks, statistics)

        Raises:
            AnalysisError: If no aircraft is ever flying
        """
        if self.verbose:
            print("\n" + "=" * 70)
            print("🔬 AIRPROX PROXIMITY ANALYSIS")
            print("=" * 70)
            print(f"\n📂 Loaded {len(self.tracks)} aircraft")

        if not self.advance_to_start():
            raise AnalysisError("No aircraft reached a flying state")

        lat, lon = self._reference_location()
        self.projection = FlatProjection(lat, lon)
        self.miner = FlockMiner(
            self.projection,
            ids=[t.id for t in self.tracks],
            epsilon=self.config.flock_epsilon,
            mu=self.config.flock_mu,
            min_duration=self.config.flock_min_duration,
            interval=self.config.flock_interval,
        )

        if self.verbose:
            print(f"\n🔍 Processing t={self.t_start}..{self.t_end} s\n")
            self.print_header()

        self._first = True
        t = self.t_start
        tcount = 0
        while t <= self.t_end:
            self.process(t)
            if self.verbose and tcount % self.display_interval == 0:
                self.print_status()
            tcount += 1
            t += 1

        self.finalise(t)

        results = self.results()
        if self.verbose:
            summary = results['statistics']['summary']
            print(f"\n✅ Analysed {summary['num_aircraft']} aircraft, "
                  f"{summary['num_flightsecs']} flight-seconds")
            print(f"   Encounters: {len(results['encounters'])}, "
                  f"Flocks: {len(results['flocks'])}")
        return results

    def finalise(self, t: int) -> None:
        """Close open encounters and flock chains and compute flight statistics."""
        self.detector.erase_expired(t, self.tracks, flush=True)
        self.miner.finalise()
        for track in self.tracks:
            track.finalise()

    # --- Progress output ---

    def get_symbol(self, track: AircraftTrack) -> str:
        if track.mark:
            return SYMBOL_ENCOUNTER
        if track.in_flock:
            return SYMBOL_FLOCK
        return track.get_symbol()

    def print_header(self) -> None:
        """Print aircraft ids vertically, one column per aircraft."""
        max_len = max((len(t.id) for t in self.tracks), default=0)
        for i in range(max_len):
            print("".join(t.id[i] if i < len(t.id) else " " for t in self.tracks))

    def print_status(self) -> None:
        symbols = []
        for track in self.tracks:
            symbols.append(self.get_symbol(track))
            track.mark = False
        print("".join(symbols))

    # --- Results ---

    def results(self) -> Dict[str, Any]:
        statistics = StatisticsEngine(self.tracks)
        results = {
            'metadata': {
                'analysis_date': datetime.now().isoformat(),
                'num_sources': len(self.tracks),
                't_start': self.t_start,
                't_end': self.t_end,
                'reference': {
                    'latitude': self.projection.ref_lat,
                    'longitude': self.projection.ref_lon,
                },
                'parameters': {
                    'safety_distance_m': self.config.safety_distance,
                    'visibility_distance_m': self.config.visibility_distance,
                    'probability_threshold': self.config.probability_threshold,
                    'flock_epsilon_m': self.config.flock_epsilon,
                    'flock_mu': self.config.flock_mu,
                    'flock_min_duration_s': self.config.flock_min_duration,
                },
            },
            'encounters': self.detector.reports,
            'flocks': self.miner.flocks,
            'statistics': statistics.get_comprehensive_stats(
                num_flightsecs=self.num_flightsecs,
                time_close=self.detector.time_close,
                alt_max=self.alt_max,
                score_buffer=self.config.score_buffer,
            ),
        }
        results['statistics']['baro_error_m'] = round(statistics.fleet_baro_error(), 1)
        if self.keep_traces:
            results['traces'] = {t.id: t.trace for t in self.tracks if t.trace}
        return results


class EncounterAnalyzer:
    """
    Convenience front end: load sources, run, and write outputs.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

    def analyze(
        self,
        sources: Sequence[SampleSource],
        output_dir: Optional[str] = None,
        keep_traces: bool = False,
    ) -> Dict[str, Any]:
        """
        Run a complete analysis.

        Args:
            sources: One fix source per aircraft
            output_dir: Directory for output files (none written if None)
            keep_traces: Include per-aircraft traces in the results

        Returns:
            Complete analysis results

        Raises:
            AnalysisError: If no aircraft is ever flying; nothing is written
        """
        collection = FlightCollection(sources, self.config, keep_traces=keep_traces)
        results = collection.run()

        if output_dir:
            written = write_outputs(results, output_dir)
            print(f"\n💾 Results saved to: {output_dir} ({len(written)} files)")

        return results

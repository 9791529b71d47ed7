"""
Encounter Detection
Pairwise statistical near-miss detection between live aircraft.

Each aircraft position carries a Gaussian error (horizontal and vertical
accuracy, 1 sigma). For every pair the probability that the true positions
are within the safety distance horizontally and within half of it
vertically is estimated; samples above the probability threshold open or
update an encounter record for the pair. Records are finalised after a
quiet period or a maximum lifetime and reported with per-aircraft traces.

The vertical and horizontal probabilities are multiplied, treating the two
errors as independent.
"""

from math import erf, exp, sqrt, pi, hypot, degrees
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import Settings
from ..utils import (
    SpeedVector,
    FlatProjection,
    destination_point,
    get_bounding_box,
    in_bounding_box,
    haversine_distance,
)
from ..tracking.interpolator import InterpolatedState
from ..tracking.kinematics import TrailPoint
from ..tracking.track import AircraftTrack
from ..tracking.visibility import Visibility
from .constants import (
    SAFETY_DISTANCE_M,
    VISIBILITY_DISTANCE_M,
    PROBABILITY_THRESHOLD,
    VERTICAL_PREFILTER_FACTOR,
    DEFAULT_FLEET_H_ACCURACY_M,
)

PairKey = Tuple[int, int]


# --- Geometry ---


def distance_horiz(a: InterpolatedState, b: InterpolatedState) -> float:
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def distance_vert(a: InterpolatedState, b: InterpolatedState) -> float:
    return abs(a.gps_altitude - b.gps_altitude)


def distance(a: InterpolatedState, b: InterpolatedState) -> float:
    return hypot(distance_horiz(a, b), distance_vert(a, b))


def midpoint(a: InterpolatedState, b: InterpolatedState) -> Tuple[float, float]:
    return (a.latitude + b.latitude) / 2, (a.longitude + b.longitude) / 2


# --- Statistics ---


def cdf_normal(z: float) -> float:
    """Standard normal cumulative distribution."""
    return 0.5 * (1 + erf(z / sqrt(2)))


def pdf_normal(z: float, sigma: float) -> float:
    return exp(-0.5 * z * z) / (sqrt(2 * pi) * sigma)


def closeness_probability(limit: float, d: float, sigma: float) -> float:
    """Probability that a distance measured as ``d`` is truly below ``limit``."""
    if sigma <= 0:
        return 1.0 if d <= limit else 0.0
    return cdf_normal((limit - d) / sigma)


def expected_distance(
    limit: float,
    d: float,
    sigma: float,
    step: float = Settings.EXPECTED_DISTANCE_STEP_M,
) -> float:
    """
    Expected absolute separation given a measured distance ``d``.

    Averages |x| over [-limit, limit] weighted by the Gaussian density
    centred on ``d``.
    """
    if sigma <= 0:
        return abs(d)

    h_acc = 0.0
    p_acc = 0.0
    n = int(round(2 * limit / step))
    for k in range(n + 1):
        x = -limit + k * step
        p = pdf_normal((x - d) / sigma, sigma)
        h_acc += abs(x) * p
        p_acc += p
    if p_acc <= 0:
        return abs(d)
    return h_acc / p_acc


def pair_key(index1: int, index2: int) -> PairKey:
    """Key for an unordered pair of aircraft indexes."""
    return (index1, index2) if index1 <= index2 else (index2, index1)


# --- Encounter records ---


class EncounterInfo:
    """
    Accumulating record of one pair's encounter.

    ``d_min`` and ``p_free`` never increase over the record's lifetime.
    Once finalised the record also provides a local flat frame at the
    closest point, drifting with the wind, for projecting the traces.
    """

    def __init__(
        self,
        encounter_id: int,
        t: int,
        origin: Tuple[float, float],
        alt: float,
        wind: SpeedVector,
        d: float,
        v: float,
        p_free: float,
    ):
        self.id = encounter_id
        self.time_start = t
        self.time_end = t
        self.time_close = 1
        self.origin = origin
        self.alt = alt
        self.wind = wind
        self._wind_east = wind.east
        self._wind_north = wind.north
        self.num_wind = 1
        self.d_min = d
        self.v_max = -v
        self.time_pred: Optional[float] = -d / v if v < 0 else None
        self.p_free = p_free

        self._projection: Optional[FlatProjection] = None
        self._drift = (0.0, 0.0)

    @property
    def p_close(self) -> float:
        """Probability that the safety distance was infringed."""
        return 1 - self.p_free

    def update(
        self,
        t: int,
        loc: Tuple[float, float],
        alt: float,
        wind: SpeedVector,
        d: float,
        v: float,
        p_free: float,
    ) -> None:
        self.time_end = t
        self.time_close += 1
        if d < self.d_min:
            self.d_min = d
            self.origin = loc
            self.alt = alt
        if v < 0:
            t_pred = -d / v
            self.time_pred = t_pred if self.time_pred is None else min(t_pred, self.time_pred)
            self.v_max = max(-v, self.v_max)

        self._wind_east += wind.east
        self._wind_north += wind.north
        self.num_wind += 1
        self.wind = SpeedVector.from_components(
            self._wind_east / self.num_wind, self._wind_north / self.num_wind
        )
        self.p_free *= p_free

    def is_expired(self, t: float) -> bool:
        if t - self.time_end > Settings.HYS_TRAIL:
            return True
        return t - self.time_start > Settings.MAX_TRAIL

    @property
    def window(self) -> Tuple[int, int]:
        """Time span covered by the encounter's traces."""
        return (
            self.time_start - Settings.TYP_TRAIL,
            self.time_end + Settings.HYS_TRAIL,
        )

    def finalise(self) -> None:
        lat, lon = self.origin
        self._projection = FlatProjection(lat, lon)
        # the wind bearing is where it blows from, so this undoes the drift
        drift_lat, drift_lon = destination_point(lat, lon, self.wind.bearing, self.wind.norm)
        self._drift = (drift_lat - lat, drift_lon - lon)

    def project_loc_wind(self, point: TrailPoint) -> Tuple[float, float]:
        """Position of a trail point in the wind-drifting frame (meters)."""
        if self._projection is None:
            self.finalise()
        dt = point.time - self.time_start
        return self._projection.project(
            point.pos.latitude + self._drift[0] * dt,
            point.pos.longitude + self._drift[1] * dt,
        )


class EncounterStore:
    """Open encounters keyed by unordered aircraft pair."""

    def __init__(self):
        self.encounters: Dict[PairKey, EncounterInfo] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self.encounters)

    def get(self, index1: int, index2: int) -> Optional[EncounterInfo]:
        return self.encounters.get(pair_key(index1, index2))

    def update(
        self,
        index1: int,
        index2: int,
        t: int,
        loc: Tuple[float, float],
        alt: float,
        wind: SpeedVector,
        d: float,
        v: float,
        p_free: float,
    ) -> EncounterInfo:
        """Open a record for the pair or fold a new close sample into it."""
        key = pair_key(index1, index2)
        info = self.encounters.get(key)
        if info is None:
            info = EncounterInfo(self._next_id, t, loc, alt, wind, d, v, p_free)
            self.encounters[key] = info
            self._next_id += 1
        else:
            info.update(t, loc, alt, wind, d, v, p_free)
        return info

    def pop_expired(self, t: float) -> List[Tuple[PairKey, EncounterInfo]]:
        expired = [(k, i) for k, i in self.encounters.items() if i.is_expired(t)]
        for key, _ in expired:
            del self.encounters[key]
        return expired

    def pop_all(self) -> List[Tuple[PairKey, EncounterInfo]]:
        items = list(self.encounters.items())
        self.encounters.clear()
        return items


# --- Detector ---


def _is_live(track: AircraftTrack) -> bool:
    return track.live and track.valid


def average_wind(a: AircraftTrack, b: AircraftTrack) -> SpeedVector:
    return SpeedVector.from_components(
        (a.wind.east + b.wind.east) / 2, (a.wind.north + b.wind.north) / 2
    )


class EncounterDetector:
    """
    Pairwise near-miss detector over a fleet of tracks.

    Attributes:
        store: Open encounters
        reports: Finalised encounter reports, in finalisation order
        time_close: Total close-sample seconds of finalised encounters
    """

    def __init__(
        self,
        safety_distance: float = SAFETY_DISTANCE_M,
        visibility_distance: float = VISIBILITY_DISTANCE_M,
        probability_threshold: float = PROBABILITY_THRESHOLD,
        default_h_accuracy: float = DEFAULT_FLEET_H_ACCURACY_M,
    ):
        self.safety_distance = safety_distance
        self.visibility_distance = visibility_distance
        self.probability_threshold = probability_threshold
        self.default_h_accuracy = default_h_accuracy

        self.store = EncounterStore()
        self.reports: List[Dict[str, Any]] = []
        self.time_close = 0

    def get_average_h_acc(self, tracks: Iterable[AircraftTrack]) -> float:
        """Mean reported horizontal accuracy of live tracks, or the default."""
        values = [t.h_acc for t in tracks if _is_live(t) and t.h_acc > 0]
        if not values:
            return self.default_h_accuracy
        return sum(values) / len(values)

    def visibility_update(self, tracks: Sequence[AircraftTrack]) -> None:
        """Record aspects between every pair of live tracks within visibility range."""
        live = [t for t in tracks if _is_live(t)]
        for i, a in enumerate(live):
            box = get_bounding_box(
                a.interp_loc.latitude, a.interp_loc.longitude, self.visibility_distance
            )
            for b in live[i + 1:]:
                if not in_bounding_box(b.interp_loc.latitude, b.interp_loc.longitude, box):
                    continue
                if distance_vert(a.interp_loc, b.interp_loc) > self.visibility_distance:
                    continue
                # box corners reach sqrt(2) * range, so check the slant range too
                if a.calc_aspect(b, self.visibility_distance):
                    b.calc_aspect(a, self.visibility_distance)

    def encounter_update(self, t: int, tracks: Sequence[AircraftTrack]) -> int:
        """
        Test every pair of live tracks at time ``t``.

        Returns:
            Number of pairs whose closeness probability exceeded the threshold
        """
        D = self.safety_distance
        live = [tr for tr in tracks if _is_live(tr)]
        h_acc_av = self.get_average_h_acc(live)
        n_close = 0

        for i, a in enumerate(live):
            a_h_acc = a.h_acc if a.h_acc > 0 else h_acc_av
            box = get_bounding_box(a.interp_loc.latitude, a.interp_loc.longitude, 2 * D)

            for b in live[i + 1:]:
                d_vert = distance_vert(a.interp_loc, b.interp_loc)
                if d_vert > VERTICAL_PREFILTER_FACTOR * D:
                    continue
                if not in_bounding_box(b.interp_loc.latitude, b.interp_loc.longitude, box):
                    continue

                v_acc = hypot(a.v_acc, b.v_acc)
                if d_vert - Settings.SIGMA_LIMIT * v_acc > D / 2:
                    continue
                p_close_v = closeness_probability(D / 2, d_vert, v_acc)

                d_horiz = distance_horiz(a.interp_loc, b.interp_loc)
                d_abs = hypot(d_horiz, d_vert)

                b_h_acc = b.h_acc if b.h_acc > 0 else h_acc_av
                h_acc = hypot(a_h_acc, b_h_acc)
                if d_abs - Settings.SIGMA_LIMIT * h_acc > D:
                    continue
                p_close_h = closeness_probability(D, d_horiz, h_acc)

                p_close = p_close_v * p_close_h
                if p_close <= self.probability_threshold:
                    continue

                n_close += 1
                self.store.update(
                    a.index,
                    b.index,
                    t,
                    midpoint(a.interp_loc, b.interp_loc),
                    a.interp_loc.baro_altitude,
                    average_wind(a, b),
                    expected_distance(D, d_abs, h_acc),
                    self._closing_speed(t, a, b, d_abs),
                    1 - p_close,
                )

        return n_close

    @staticmethod
    def _closing_speed(t: int, a: AircraftTrack, b: AircraftTrack, d_abs: float) -> float:
        """Change in separation since the previous second; negative when closing."""
        la, lb = a.interp_loc_last, b.interp_loc_last
        if la is None or lb is None or la.time != t - 1 or lb.time != t - 1:
            return 0.0
        return d_abs - distance(la, lb)

    def erase_expired(
        self, t: float, tracks: Sequence[AircraftTrack], flush: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Finalise expired encounters, apply penalties and build reports.

        Args:
            t: Current time
            tracks: Whole fleet, for participants and third parties
            flush: Finalise every open encounter regardless of age

        Returns:
            Reports of the encounters finalised by this call
        """
        expired = self.store.pop_all() if flush else self.store.pop_expired(t)
        if not expired:
            return []

        by_index = {tr.index: tr for tr in tracks}
        finalised = []

        for (i1, i2), info in expired:
            info.finalise()
            a, b = by_index[i1], by_index[i2]

            self.time_close += info.time_close
            penalty = max(0.0, self.safety_distance - info.d_min)
            for track in (a, b):
                track.penalty += penalty
                track.n_encounters += 1
                track.mark = True

            t0, t1 = info.window
            others = [
                tr
                for tr in tracks
                if tr.index not in (i1, i2)
                and (a.other_visible(t0, t1, tr.index) or b.other_visible(t0, t1, tr.index))
            ]

            report = self.build_report(info, a, b, others, penalty)
            self.reports.append(report)
            finalised.append(report)

        return finalised

    # --- Reporting ---

    def build_report(
        self,
        info: EncounterInfo,
        a: AircraftTrack,
        b: AircraftTrack,
        others: Sequence[AircraftTrack],
        penalty: float,
    ) -> Dict[str, Any]:
        aircraft = [
            self.aircraft_report(info, a, b.index, detailed=True),
            self.aircraft_report(info, b, a.index, detailed=True),
        ]
        aircraft.extend(self.aircraft_report(info, o, None) for o in others)

        return {
            "id": info.id,
            "aircraft_ids": [a.id, b.id],
            "time_start": info.time_start,
            "time_end": info.time_end,
            "time_close": info.time_close,
            "d_min": round(info.d_min, 1),
            "d_threshold": self.safety_distance,
            "time_pred": round(info.time_pred, 1) if info.time_pred is not None else None,
            "v_max": round(info.v_max, 1),
            "latitude": round(info.origin[0], 8),
            "longitude": round(info.origin[1], 8),
            "altitude": round(info.alt, 1),
            "wind": {
                "bearing": round(info.wind.bearing, 1),
                "speed": round(info.wind.norm, 1),
            },
            "p_close": round(info.p_close, 2),
            "penalty": round(penalty, 1),
            "aircraft": aircraft,
        }

    def aircraft_report(
        self,
        info: EncounterInfo,
        track: AircraftTrack,
        target_index: Optional[int],
        detailed: bool = False,
    ) -> Dict[str, Any]:
        """
        One aircraft's view of an encounter.

        Participants get the full per-point attitude and visibility trace,
        third parties only position and attitude.
        """
        t0, t1 = info.window
        trace = []
        plausible = True
        visibility_scores = []

        for p in track.trail_window(t0, t1):
            x, y = info.project_loc_wind(p)
            entry = {
                "t": p.time - info.time_start,
                "x": round(x, 1),
                "y": round(y, 1),
                "alt_baro": round(p.pos.baro_altitude, 1),
                "alt_gps": round(p.pos.gps_altitude, 1),
                "v_ias": round(p.v_ias, 1),
                "v": round(p.v_wind.norm, 1),
                "hdg": round(p.v_wind.bearing, 1),
                "bank": round(degrees(p.bank_angle), 1),
                "pitch": round(degrees(p.pitch_angle), 1),
                "yaw": round(degrees(p.yaw_angle), 1),
            }

            if detailed:
                plausible = plausible and p.plausible
                entry.update(
                    {
                        "turnrate": round(degrees(p.turn_rate), 1),
                        "turn_mode": p.turn_mode,
                        "actual": p.actual,
                        "plausible": p.plausible,
                        "fix_acc": round(p.fix_acc, 1),
                    }
                )
                aspect = p.lookup_aspect(target_index) if target_index is not None else None
                if aspect is not None and aspect.range > 0:
                    visibility = Visibility(aspect)
                    if p.time <= info.time_start:
                        visibility_scores.append(visibility.score)
                    entry.update(
                        {
                            "range": round(aspect.range, 1),
                            "elevation_angle": round(degrees(aspect.elevation_angle), 1),
                            "azimuth_angle": round(degrees(aspect.azimuth_angle), 1),
                            "inclination_angle": round(degrees(aspect.inclination_angle), 1),
                            "ang_size": round(degrees(visibility.angular_size), 1),
                            "occlusion": visibility.occlusion,
                            "focus_factor": visibility.focus_factor,
                        }
                    )

            trace.append(entry)

        report = {
            "id": track.id,
            "type_info": track.source.type_info,
            "turn_mode_list": "-".join(
                track.turn_mode_list(info.time_start - Settings.TYP_TRAIL, info.time_start + 1)
            ),
            "in_flock": track.in_flock,
            "trace": trace,
        }
        if detailed:
            report["plausible"] = plausible
            report["visibility_avg"] = (
                round(sum(visibility_scores) / len(visibility_scores), 2)
                if visibility_scores
                else None
            )
        return report

"""
Flock Mining
Detects groups of aircraft flying together using disk-based spatiotemporal
pattern mining.

At each mining step:
1. Candidate disks are generated from every pair of nearby points
2. Disks whose member set is contained in another disk are pruned
3. Disks are linked to the previous step's disks sharing at least mu members
4. Chains that were not continued are finalised and reported when they lasted
   at least min_duration

A flock is a set of at least mu aircraft that stay inside a disk of radius
epsilon for at least min_duration seconds.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from math import sqrt
from typing import Dict, List, Optional, Sequence, Any

from ..config import Settings
from ..utils import FlatProjection
from .constants import (
    FLOCK_EPSILON_M,
    FLOCK_MU,
    FLOCK_MIN_DURATION_S,
    FLOCK_INTERVAL_S,
    DISK_PRECISION,
)


@dataclass(frozen=True)
class Point:
    """Position in the local flat frame (meters)."""

    x: float
    y: float

    def dist_sq(self, other: "Point") -> float:
        return (self.x - other.x) ** 2 + (self.y - other.y) ** 2


@dataclass(frozen=True)
class IndexPoint:
    """A projected aircraft position tagged with the aircraft's index."""

    point: Point
    index: int

    @property
    def x(self) -> float:
        return self.point.x

    @property
    def y(self) -> float:
        return self.point.y


@dataclass
class Disk:
    """Candidate disk: a center and the points within epsilon of it."""

    center: Point
    points: Dict[int, Point] = field(default_factory=dict)

    @property
    def members(self):
        return self.points.keys()

    def __len__(self) -> int:
        return len(self.points)


@dataclass(eq=False)
class DiskNode:
    """
    A disk placed in the frontier of one mining step.

    Attributes:
        disk: Center and member points
        t: Time of the mining step
        id: Position within its frontier
        duration: Seconds the chain ending here has been continuously linked
        predecessor: Linked disk in the previous frontier, if any
        reused: A disk in the next frontier linked to this one
    """

    disk: Disk
    t: int
    id: int = -1
    duration: int = 0
    predecessor: Optional["DiskNode"] = None
    reused: bool = False

    @property
    def points(self) -> Dict[int, Point]:
        return self.disk.points

    def calc_center(self) -> Point:
        """Centroid of the member points."""
        n = len(self.disk.points)
        return Point(
            sum(p.x for p in self.disk.points.values()) / n,
            sum(p.y for p in self.disk.points.values()) / n,
        )

    def present(self, index: int) -> bool:
        return index in self.disk.points

    def chain(self) -> List["DiskNode"]:
        """Linked disks from the oldest to this one."""
        nodes = []
        node: Optional[DiskNode] = self
        while node is not None:
            nodes.append(node)
            node = node.predecessor
        nodes.reverse()
        return nodes


class DiskStore(list):
    """De-duplicated frontier of disks for one mining step."""

    def insert_disk(self, disk: Disk, t: int) -> bool:
        """
        Insert a disk unless an existing disk already covers its members.

        Existing disks whose members are a subset of the new disk's are
        removed. On identical member sets the earlier disk is kept.

        Returns:
            True if the disk was inserted
        """
        members = set(disk.members)
        keep = []
        for node in self:
            existing = set(node.points)
            if members <= existing:
                return False
            if existing < members:
                continue
            keep.append(node)
        self[:] = keep
        self.append(DiskNode(disk, t))
        return True

    def number(self) -> None:
        for i, node in enumerate(self):
            node.id = i


class BoundingBox:
    """Axis-aligned box around a neighbourhood, holding its candidate disks."""

    def __init__(self, ll: Point, ur: Point):
        self.ll = ll
        self.ur = ur
        self.disks: List[Disk] = []

    @classmethod
    def from_points(cls, points: Sequence[IndexPoint]) -> "BoundingBox":
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(Point(min(xs), min(ys)), Point(max(xs), max(ys)))

    def intersects_with(self, other: "BoundingBox") -> bool:
        return not (
            other.ll.x > self.ur.x
            or other.ur.x < self.ll.x
            or other.ur.y < self.ll.y
            or other.ll.y > self.ur.y
        )


class PSIAlgorithm:
    """
    Per-step disk mining and cross-step linking.

    Args:
        epsilon: Disk radius (meters)
        mu: Minimum members per disk
        min_duration: Minimum chain duration to count as a flock (seconds)
        interval: Seconds between mining steps
    """

    def __init__(
        self,
        epsilon: float = FLOCK_EPSILON_M,
        mu: int = FLOCK_MU,
        min_duration: int = FLOCK_MIN_DURATION_S,
        interval: int = FLOCK_INTERVAL_S,
    ):
        self.epsilon = epsilon
        self.epsilon_sq = epsilon * epsilon
        self.mu = mu
        self.min_duration = min_duration
        self.interval = interval
        self._member_sq = (epsilon + DISK_PRECISION) ** 2

    def calc_disks(self, p1: Point, p2: Point) -> List[Point]:
        """
        Centers of the two radius-epsilon circles through both points.

        Coincident points, or points further apart than the diameter,
        give no disk.
        """
        d_sq = p1.dist_sq(p2)
        if d_sq == 0 or d_sq > 4 * self.epsilon_sq:
            return []

        mx, my = (p1.x + p2.x) / 2, (p1.y + p2.y) / 2
        d = sqrt(d_sq)
        h = sqrt(max(self.epsilon_sq - d_sq / 4, 0.0))
        # unit normal to p1->p2
        nx, ny = -(p2.y - p1.y) / d, (p2.x - p1.x) / d

        return [
            Point(mx + nx * h, my + ny * h),
            Point(mx - nx * h, my - ny * h),
        ]

    def _make_disk(self, center: Point, neighbours: Sequence[IndexPoint]) -> Disk:
        disk = Disk(center)
        for q in neighbours:
            if q.point.dist_sq(center) <= self._member_sq:
                disk.points[q.index] = q.point
        return disk

    def find_candidate_disks(self, points: Sequence[IndexPoint]) -> List[BoundingBox]:
        """
        Generate candidate disks around every point.

        Returns:
            One bounding box per point with enough neighbours, carrying the
            disks that have at least mu members
        """
        candidates = []

        for pr in points:
            neighbours = [
                ps
                for ps in points
                if abs(ps.x - pr.x) <= self.epsilon
                and abs(ps.y - pr.y) <= self.epsilon
                and ps.point.dist_sq(pr.point) <= self.epsilon_sq
            ]
            if len(neighbours) < self.mu:
                continue

            box = BoundingBox.from_points(neighbours)

            # coincident points produce no pair disks, so seed one on pr itself
            centers = [pr.point]
            for p in neighbours:
                if p.x < pr.x:
                    continue
                centers.extend(self.calc_disks(pr.point, p.point))

            for center in centers:
                disk = self._make_disk(center, neighbours)
                if len(disk) >= self.mu:
                    box.disks.append(disk)

            if box.disks:
                candidates.append(box)

        return candidates

    def filter_candidates(self, boxes: List[BoundingBox], t: int) -> DiskStore:
        """
        Reduce candidate disks to a frontier with subset disks pruned.

        Boxes are merged into groups of overlapping x-extent; only disks
        within a group can share members.
        """
        frontier = DiskStore()
        if not boxes:
            return frontier

        boxes = sorted(boxes, key=lambda b: b.ll.x)
        groups: List[List[BoundingBox]] = []
        group_ur_x = None
        for box in boxes:
            if groups and box.ll.x <= group_ur_x:
                groups[-1].append(box)
                group_ur_x = max(group_ur_x, box.ur.x)
            else:
                groups.append([box])
                group_ur_x = box.ur.x

        for group in groups:
            store = DiskStore()
            for box in group:
                for disk in box.disks:
                    store.insert_disk(disk, t)
            frontier.extend(store)

        frontier.number()
        return frontier

    def connect_disks(self, disks: DiskStore, disks_prev: DiskStore) -> None:
        """
        Link each disk to the best disk of the previous frontier.

        A previous disk qualifies when it shares at least mu members. The
        longest-lived qualifying disk wins, then the one with more members.
        Every qualifying disk is marked reused.
        """
        if not disks or not disks_prev:
            return

        inv_index: Dict[int, List[int]] = defaultdict(list)
        for node in disks_prev:
            for index in node.points:
                inv_index[index].append(node.id)

        for d in disks:
            shared = Counter()
            for index in d.points:
                shared.update(inv_index.get(index, ()))

            best = None
            for prev_id in sorted(shared):
                if shared[prev_id] < self.mu:
                    continue
                prev = disks_prev[prev_id]
                prev.reused = True
                if best is None or (prev.duration, len(prev.points)) > (
                    best.duration,
                    len(best.points),
                ):
                    best = prev

            if best is not None:
                d.predecessor = best
                d.duration = best.duration + (d.t - best.t)


class FlockMiner(PSIAlgorithm):
    """
    Flock miner over the projected positions of a fleet.

    Keeps only the current and previous frontiers; finalised chains are
    collected in ``flocks`` as report dictionaries.

    Example:
        >>> miner = FlockMiner(FlatProjection(52.0, 13.0), ids=["A", "B", "C", "D"])
        >>> miner.process_time(100, points)
        >>> miner.finalise()
        >>> miner.flocks
    """

    def __init__(
        self,
        projection: FlatProjection,
        ids: Optional[List[str]] = None,
        epsilon: float = FLOCK_EPSILON_M,
        mu: int = FLOCK_MU,
        min_duration: int = FLOCK_MIN_DURATION_S,
        interval: int = FLOCK_INTERVAL_S,
    ):
        super().__init__(epsilon, mu, min_duration, interval)
        self.projection = projection
        self.ids = list(ids) if ids else []
        self.current: DiskStore = DiskStore()
        self.previous: DiskStore = DiskStore()
        self.flocks: List[Dict[str, Any]] = []

    def process_time(self, t: int, points: Sequence[IndexPoint]) -> DiskStore:
        """
        Mine one step.

        Args:
            t: Step time (seconds)
            points: Projected positions of candidate aircraft

        Returns:
            The new frontier
        """
        frontier = self.filter_candidates(self.find_candidate_disks(points), t)
        for node in frontier:
            node.duration = self.interval

        self.previous, self.current = self.current, frontier
        self.connect_disks(self.current, self.previous)
        self.finalise_disks(self.previous)
        return self.current

    def find_flock(self, index: int) -> bool:
        """True if aircraft ``index`` is in a current disk lasting min_duration."""
        return any(
            node.duration >= self.min_duration and node.present(index)
            for node in self.current
        )

    def mark_in_flock(self, tracks) -> None:
        """Set the in_flock flag on every track."""
        for track in tracks:
            track.in_flock = self.find_flock(track.index)

    def finalise(self) -> None:
        """Finalise every chain still open at the end of the run."""
        self.finalise_disks(self.current, include_reused=True)
        self.previous = DiskStore()
        self.current = DiskStore()

    def finalise_disks(self, disks: DiskStore, include_reused: bool = False) -> None:
        for node in disks:
            if node.reused and not include_reused:
                continue
            if node.duration >= self.min_duration:
                self.flocks.append(self.report_chain(node))

    def _member_id(self, index: int) -> str:
        if 0 <= index < len(self.ids):
            return self.ids[index]
        return str(index)

    def report_disk(self, node: DiskNode) -> Dict[str, Any]:
        center = node.calc_center()
        lat, lon = self.projection.unproject(center.x, center.y)
        return {
            "t": node.t,
            "latitude": round(lat, 5),
            "longitude": round(lon, 5),
            "members": [self._member_id(i) for i in sorted(node.points)],
        }

    def report_chain(self, node: DiskNode) -> Dict[str, Any]:
        """
        Flock report for the chain ending at ``node``.

        The trace samples every n-th disk of the chain plus the last one;
        the bounds cover every disk centre of the chain.
        """
        chain = node.chain()
        sampled = chain[:-1][:: Settings.FLOCK_TRACE_DECIMATION] + [node]
        trace = [self.report_disk(n) for n in sampled]

        centers = [n.calc_center() for n in chain]
        positions = [self.projection.unproject(c.x, c.y) for c in centers]
        lats = [round(lat, 5) for lat, _ in positions]
        lons = [round(lon, 5) for _, lon in positions]

        return {
            "id": len(self.flocks),
            "time_start": chain[0].t,
            "time_end": node.t,
            "duration": node.duration,
            "av_size": round(sum(len(n.points) for n in chain) / len(chain), 1),
            "trace": trace,
            "bounds": {
                "west": min(lons),
                "east": max(lons),
                "north": max(lats),
                "south": min(lats),
            },
        }

"""
Tests for flock mining.
"""

import pytest

from airprox.analysis.flock_miner import (
    BoundingBox,
    Disk,
    DiskStore,
    FlockMiner,
    IndexPoint,
    PSIAlgorithm,
    Point,
)
from airprox.utils import FlatProjection


def cluster(indexes, x0=0.0, y0=0.0, spacing=100.0):
    """Points in a row starting at (x0, y0)."""
    return [IndexPoint(Point(x0 + i * spacing, y0), idx) for i, idx in enumerate(indexes)]


@pytest.fixture
def miner():
    """Miner with a short minimum duration."""
    return FlockMiner(
        FlatProjection(52.0, 13.0),
        ids=["A", "B", "C", "D", "E"],
        epsilon=1000.0,
        mu=4,
        min_duration=12,
        interval=4,
    )


class TestDiskGeometry:
    """Tests for candidate disk construction."""

    def test_calc_disks(self):
        psi = PSIAlgorithm(epsilon=1000.0)
        p1, p2 = Point(0.0, 0.0), Point(1000.0, 0.0)
        centers = psi.calc_disks(p1, p2)
        assert len(centers) == 2
        for c in centers:
            assert c.dist_sq(p1) == pytest.approx(1000.0 ** 2)
            assert c.dist_sq(p2) == pytest.approx(1000.0 ** 2)
        assert {round(c.y) for c in centers} == {866, -866}

    def test_calc_disks_degenerate(self):
        psi = PSIAlgorithm(epsilon=1000.0)
        assert psi.calc_disks(Point(0.0, 0.0), Point(0.0, 0.0)) == []
        assert psi.calc_disks(Point(0.0, 0.0), Point(2500.0, 0.0)) == []

    def test_colocated_cluster_yields_disk(self):
        """Coincident points still produce a candidate disk."""
        psi = PSIAlgorithm(epsilon=1000.0, mu=4)
        points = [IndexPoint(Point(10.0, 10.0), i) for i in range(4)]
        boxes = psi.find_candidate_disks(points)
        assert boxes
        frontier = psi.filter_candidates(boxes, 0)
        assert len(frontier) == 1
        assert set(frontier[0].points) == {0, 1, 2, 3}

    def test_too_few_points(self):
        psi = PSIAlgorithm(epsilon=1000.0, mu=4)
        assert psi.find_candidate_disks(cluster([0, 1, 2])) == []

    def test_separate_clusters(self):
        psi = PSIAlgorithm(epsilon=1000.0, mu=4)
        points = cluster([0, 1, 2, 3]) + cluster([4, 5, 6, 7], x0=10000.0)
        frontier = psi.filter_candidates(psi.find_candidate_disks(points), 0)
        assert sorted(sorted(node.points) for node in frontier) == [[0, 1, 2, 3], [4, 5, 6, 7]]
        assert [node.id for node in frontier] == [0, 1]

    def test_bounding_box_intersection(self):
        a = BoundingBox(Point(0.0, 0.0), Point(10.0, 10.0))
        b = BoundingBox(Point(5.0, 5.0), Point(20.0, 20.0))
        c = BoundingBox(Point(11.0, 0.0), Point(20.0, 10.0))
        assert a.intersects_with(b)
        assert not a.intersects_with(c)


class TestDiskStore:
    """Tests for subset pruning."""

    def _disk(self, members, x=0.0):
        return Disk(Point(x, 0.0), {i: Point(float(i), 0.0) for i in members})

    def test_identical_members_keep_first(self):
        store = DiskStore()
        assert store.insert_disk(self._disk([0, 1, 2, 3], x=1.0), 0)
        assert not store.insert_disk(self._disk([0, 1, 2, 3], x=2.0), 0)
        assert len(store) == 1
        assert store[0].disk.center.x == 1.0

    def test_subset_rejected(self):
        store = DiskStore()
        store.insert_disk(self._disk([0, 1, 2, 3, 4]), 0)
        assert not store.insert_disk(self._disk([0, 1, 2, 3]), 0)
        assert len(store) == 1

    def test_superset_replaces(self):
        store = DiskStore()
        store.insert_disk(self._disk([0, 1, 2, 3]), 0)
        store.insert_disk(self._disk([5, 6, 7, 8]), 0)
        assert store.insert_disk(self._disk([0, 1, 2, 3, 4]), 0)
        assert sorted(len(node.points) for node in store) == [4, 5]

    def test_overlapping_kept(self):
        store = DiskStore()
        store.insert_disk(self._disk([0, 1, 2, 3]), 0)
        assert store.insert_disk(self._disk([1, 2, 3, 4]), 0)
        assert len(store) == 2


class TestLinking:
    """Tests for cross-step linking and durations."""

    def test_duration_grows_by_interval(self, miner):
        points = cluster([0, 1, 2, 3])
        for k in range(1, 6):
            frontier = miner.process_time(4 * k, points)
            assert len(frontier) == 1
            assert frontier[0].duration == 4 * k
        assert miner.previous[0].reused

    def test_chain(self, miner):
        points = cluster([0, 1, 2, 3])
        for t in (4, 8, 12):
            miner.process_time(t, points)
        chain = miner.current[0].chain()
        assert [node.t for node in chain] == [4, 8, 12]

    def test_requires_mu_shared_members(self, miner):
        miner.process_time(4, cluster([0, 1, 2, 3]))
        frontier = miner.process_time(8, cluster([0, 1, 2, 4]))
        assert frontier[0].predecessor is None
        assert frontier[0].duration == 4

    def test_moving_cluster_links(self, miner):
        for k in range(1, 5):
            miner.process_time(4 * k, cluster([0, 1, 2, 3], x0=200.0 * k))
        assert miner.current[0].duration == 16

    def test_find_flock(self, miner):
        points = cluster([0, 1, 2, 3])
        miner.process_time(4, points)
        assert not miner.find_flock(0)
        miner.process_time(8, points)
        miner.process_time(12, points)
        assert miner.find_flock(0)
        assert not miner.find_flock(4)


class TestReporting:
    """Tests for flock finalisation."""

    def test_short_chain_not_reported(self, miner):
        points = cluster([0, 1, 2, 3])
        miner.process_time(4, points)
        miner.process_time(8, points)
        miner.process_time(12, [])
        assert miner.flocks == []

    def test_chain_reported_when_broken(self, miner):
        points = cluster([0, 1, 2, 3])
        for t in (4, 8, 12):
            miner.process_time(t, points)
        assert miner.flocks == []
        miner.process_time(16, [])

        assert len(miner.flocks) == 1
        flock = miner.flocks[0]
        assert flock["id"] == 0
        assert flock["time_start"] == 4
        assert flock["time_end"] == 12
        assert flock["duration"] == 12
        assert flock["av_size"] == 4.0
        assert flock["trace"][-1]["members"] == ["A", "B", "C", "D"]

    def test_finalise_reports_open_chains(self, miner):
        points = cluster([0, 1, 2, 3])
        for t in (4, 8, 12, 16):
            miner.process_time(t, points)
        miner.finalise()
        assert len(miner.flocks) == 1
        assert miner.flocks[0]["duration"] == 16
        assert len(miner.current) == 0
        assert len(miner.previous) == 0

    def test_trace_decimation(self, miner):
        points = cluster([0, 1, 2, 3])
        for k in range(1, 41):
            miner.process_time(4 * k, points)
        miner.finalise()
        trace = miner.flocks[0]["trace"]
        assert [p["t"] for p in trace] == [4, 64, 124, 160]

    def test_report_position_and_bounds(self, miner):
        points = cluster([0, 1, 2, 3], x0=-150.0)
        for t in (4, 8, 12):
            miner.process_time(t, points)
        miner.finalise()
        flock = miner.flocks[0]
        point = flock["trace"][0]
        assert point["latitude"] == pytest.approx(52.0, abs=1e-5)
        assert point["longitude"] == pytest.approx(13.0, abs=1e-5)
        bounds = flock["bounds"]
        assert bounds["west"] <= bounds["east"]
        assert bounds["south"] <= bounds["north"]

    def test_bounds_cover_whole_chain(self, miner):
        """Bounds include disks left out of the decimated trace."""
        for k in range(1, 21):
            y = 100.0 * k if k <= 5 else 100.0 * (10 - k)
            miner.process_time(4 * k, cluster([0, 1, 2, 3], y0=y))
        miner.finalise()
        flock = miner.flocks[0]

        assert [p["t"] for p in flock["trace"]] == [4, 64, 80]
        north = FlatProjection(52.0, 13.0).unproject(150.0, 500.0)[0]
        assert flock["bounds"]["north"] == pytest.approx(north, abs=1e-5)
        assert flock["bounds"]["north"] > max(p["latitude"] for p in flock["trace"])

    def test_mark_in_flock(self, miner):
        class Stub:
            def __init__(self, index):
                self.index = index
                self.in_flock = False

        tracks = [Stub(i) for i in range(5)]
        points = cluster([0, 1, 2, 3])
        for t in (4, 8, 12):
            miner.process_time(t, points)
        miner.mark_in_flock(tracks)
        assert [t.in_flock for t in tracks] == [True, True, True, True, False]

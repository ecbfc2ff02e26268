"""Tests for the grid and the track registry."""

import threading
from datetime import timedelta, timezone, datetime

import pytest

from aisab.core.dispatcher import NotificationDispatcher
from aisab.core.statistics import AppStatistics
from aisab.tracking.grid import Grid
from aisab.tracking.track import CellChanged, Position, TrackStale
from aisab.tracking.track_registry import TrackRegistry

from conftest import MMSI, T0, make_report


class Recorder:
    def __init__(self):
        self.items = []
        self._lock = threading.Lock()

    def __call__(self, notification):
        with self._lock:
            self.items.append(notification)


@pytest.fixture
def dispatcher():
    return NotificationDispatcher()


@pytest.fixture
def statistics():
    return AppStatistics()


@pytest.fixture
def registry(dispatcher, statistics, grid):
    return TrackRegistry(dispatcher, statistics, grid, stale_timeout_seconds=1800)


@pytest.fixture
def cell_changes(dispatcher):
    recorder = Recorder()
    dispatcher.subscribe(CellChanged, recorder)
    return recorder


@pytest.fixture
def stale(dispatcher):
    recorder = Recorder()
    dispatcher.subscribe(TrackStale, recorder)
    return recorder


class TestGrid:

    def test_cell_id_example(self):
        assert Grid(0.5).cell_id(Position(55.2, 11.9)) == 209183

    def test_same_cell_for_nearby_positions(self, grid):
        assert grid.cell_id(Position(55.1, 11.6)) == grid.cell_id(Position(55.4, 11.9))

    def test_different_cells(self, grid):
        assert grid.cell_id(Position(55.1, 11.6)) != grid.cell_id(Position(55.6, 11.6))

    def test_edges_are_clamped(self, grid):
        assert grid.cell_id(Position(90.0, 180.0)) == grid.cell_count - 1
        assert grid.cell_id(Position(-95.0, -200.0)) == 0

    def test_cell_center_round_trip(self, grid):
        cell_id = grid.cell_id(Position(55.2, 11.9))
        assert grid.cell_id(grid.cell_center(cell_id)) == cell_id

    def test_resolution_must_be_positive(self):
        with pytest.raises(ValueError):
            Grid(0)


class TestReports:

    def test_first_report_creates_track_and_cell_change(self, registry, cell_changes, statistics):
        snapshot = registry.on_report(make_report())

        assert snapshot.mmsi == MMSI
        assert registry.track_count == 1
        assert len(cell_changes.items) == 1
        assert cell_changes.items[0].previous_cell_id is None
        assert statistics.get("TrackRegistry", "Tracks created") == 1

    def test_same_cell_publishes_nothing(self, registry, cell_changes):
        registry.on_report(make_report())
        registry.on_report(make_report(position=Position(55.71, 12.61), timestamp=T0 + timedelta(seconds=10)))
        assert len(cell_changes.items) == 1

    def test_new_cell_publishes_cell_changed(self, registry, cell_changes):
        first = registry.on_report(make_report())
        registry.on_report(make_report(position=Position(56.2, 12.6), timestamp=T0 + timedelta(minutes=5)))

        assert len(cell_changes.items) == 2
        change = cell_changes.items[1]
        assert change.previous_cell_id == first.cell_id
        assert change.track.cell_id != first.cell_id
        assert change.timestamp == T0 + timedelta(minutes=5)

    def test_missing_position_is_dropped(self, registry, statistics, cell_changes):
        assert registry.on_report(make_report(position=None)) is None
        assert registry.track_count == 0
        assert cell_changes.items == []
        assert statistics.get("TrackRegistry", "Missing position") == 1

    @pytest.mark.parametrize("mmsi", [0, -1, 1000000000])
    def test_invalid_mmsi_is_dropped(self, registry, statistics, mmsi):
        assert registry.on_report(make_report(mmsi=mmsi)) is None
        assert statistics.get("TrackRegistry", "Invalid mmsi") == 1

    def test_static_fields_survive_reports_without_them(self, registry):
        registry.on_report(make_report(name="NORD STAR", ship_type=70))
        snapshot = registry.on_report(make_report(name=None, ship_type=None, speed_over_ground=None))

        assert snapshot.name == "NORD STAR"
        assert snapshot.ship_type == 70
        assert snapshot.speed_over_ground is None

    def test_naive_timestamps_are_utc(self, registry):
        snapshot = registry.on_report(make_report(timestamp=datetime(2024, 5, 1, 12, 0, 0)))
        assert snapshot.timestamp == T0
        assert snapshot.timestamp.tzinfo is not None

    def test_concurrent_vessels_each_get_a_track(self, registry, cell_changes):
        def feed(mmsi):
            for i in range(20):
                registry.on_report(make_report(mmsi=mmsi, timestamp=T0 + timedelta(seconds=i)))

        threads = [threading.Thread(target=feed, args=(100000000 + n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.track_count == 8
        assert len(cell_changes.items) == 8


class TestStaleness:

    def test_sweep_evicts_stale_tracks_once(self, registry, stale, statistics):
        registry.on_report(make_report())
        now = T0 + timedelta(minutes=31)

        assert registry.sweep(now) == 1
        assert registry.sweep(now) == 0

        assert registry.track_count == 0
        assert len(stale.items) == 1
        assert stale.items[0].timestamp == now
        assert stale.items[0].track.mmsi == MMSI
        assert statistics.get("TrackRegistry", "Tracks stale") == 1

    def test_recent_tracks_survive(self, registry, stale):
        registry.on_report(make_report())
        assert registry.sweep(T0 + timedelta(minutes=30)) == 0
        assert registry.track_count == 1
        assert stale.items == []

    def test_report_after_eviction_starts_fresh_track(self, registry, cell_changes):
        registry.on_report(make_report(name="NORD STAR"))
        registry.sweep(T0 + timedelta(hours=1))

        snapshot = registry.on_report(make_report(name=None, timestamp=T0 + timedelta(hours=2)))

        assert snapshot.name is None
        assert len(cell_changes.items) == 2
        assert cell_changes.items[1].previous_cell_id is None

    def test_background_sweeper_uses_clock(self, dispatcher, statistics, grid, stale):
        now = [T0]
        registry = TrackRegistry(
            dispatcher, statistics, grid,
            stale_timeout_seconds=60,
            sweep_interval_seconds=0.01,
            clock=lambda: now[0]
        )
        registry.on_report(make_report())
        now[0] = T0 + timedelta(minutes=5)

        registry.start()
        try:
            for _ in range(200):
                if stale.items:
                    break
                threading.Event().wait(0.01)
        finally:
            registry.stop()

        assert not registry.is_running
        assert len(stale.items) == 1
        assert stale.items[0].timestamp == T0 + timedelta(minutes=5)
        assert stale.items[0].timestamp.tzinfo == timezone.utc

    def test_stop_waits_for_sweep_in_progress(self, dispatcher, statistics, grid):
        registry = TrackRegistry(
            dispatcher, statistics, grid,
            stale_timeout_seconds=60,
            sweep_interval_seconds=0.01,
            clock=lambda: T0 + timedelta(minutes=5)
        )
        entered = threading.Event()
        release = threading.Event()
        order = []

        def slow_handler(notification):
            entered.set()
            release.wait(5)
            order.append("handler done")

        dispatcher.subscribe(TrackStale, slow_handler)
        registry.on_report(make_report())
        registry.start()
        assert entered.wait(5)

        def stop():
            registry.stop()
            order.append("stopped")

        stopper = threading.Thread(target=stop)
        stopper.start()
        stopper.join(0.1)
        assert stopper.is_alive()
        assert order == []

        release.set()
        stopper.join(5)
        assert not stopper.is_alive()
        assert order == ["handler done", "stopped"]
        assert not registry.is_running

    def test_reports_racing_sweeps_are_never_lost(self, registry, stale, cell_changes, statistics):
        reports = 300
        last_timestamp = T0 + timedelta(seconds=reports - 1)
        sweep_at = T0 + timedelta(days=1)
        evictions = []
        lock = threading.Lock()
        feeding = threading.Event()

        def feed():
            try:
                for i in range(reports):
                    registry.on_report(make_report(timestamp=T0 + timedelta(seconds=i)))
            finally:
                feeding.set()

        def sweep():
            while not feeding.is_set():
                evicted = registry.sweep(sweep_at)
                with lock:
                    evictions.append(evicted)

        threads = [threading.Thread(target=feed)] + [threading.Thread(target=sweep) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        evicted = sum(evictions)
        assert len(stale.items) == evicted
        assert statistics.get("TrackRegistry", "Tracks stale") == evicted
        assert statistics.get("TrackRegistry", "Tracks created") == evicted + registry.track_count
        assert registry.track_count <= 1
        assert all(change.previous_cell_id is None for change in cell_changes.items)

        # The last report sits either in the live track or in the snapshot of its eviction
        final = registry.get_track(MMSI)
        if final is not None:
            assert final.timestamp == last_timestamp
        else:
            assert any(s.track.timestamp == last_timestamp for s in stale.items)

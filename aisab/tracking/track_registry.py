"""
AisAB - AIS Abnormal Behaviour Analyzer
Track Registry Module

This module maintains the live state of every vessel and tells the
analyses when something worth analysing happened.

Features:
- Per-vessel track creation and in-place update from reports
- Grid cell change detection (CellChanged)
- Background staleness sweep with exactly-once eviction (TrackStale)
- Per-vessel locking; different vessels never wait for each other
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from aisab.core.dispatcher import NotificationDispatcher
from aisab.core.statistics import AppStatistics
from aisab.tracking.grid import Grid
from aisab.tracking.track import CellChanged, Report, Track, TrackSnapshot, TrackStale

# Configure module logger
logger = logging.getLogger(__name__)

MMSI_MIN = 1
MMSI_MAX = 999999999


def as_utc(timestamp: datetime) -> datetime:
    """Normalize to an aware UTC timestamp; naive timestamps are taken as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrackRegistry:
    """
    In-memory registry of vessel tracks.

    Attributes:
        stale_timeout: Inactivity after which a track is evicted
        sweep_interval: Time between background staleness sweeps

    Example:
        >>> registry = TrackRegistry(dispatcher, statistics, Grid(0.005))
        >>> registry.start()
        >>> registry.on_report(report)
        >>> snapshot = registry.get_track(219000123)
        >>> registry.stop()
    """

    COMPONENT = "TrackRegistry"

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        statistics: AppStatistics,
        grid: Grid,
        stale_timeout_seconds: float = 1800.0,
        sweep_interval_seconds: float = 60.0,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the track registry.

        Args:
            dispatcher: Receives CellChanged and TrackStale notifications
            statistics: Counter sink for dropped reports and track lifecycle
            grid: Computes the cell id of a position
            stale_timeout_seconds: Inactivity before a track is stale
            sweep_interval_seconds: Interval of the background sweep
            clock: Source of "now" for the sweep (defaults to UTC wall clock)
        """
        self._dispatcher = dispatcher
        self._statistics = statistics
        self._grid = grid
        self._stale_timeout = timedelta(seconds=stale_timeout_seconds)
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock or utc_now

        self._tracks: Dict[int, Track] = {}
        self._tracks_lock = threading.Lock()

        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

        logger.info(
            f"TrackRegistry initialized with stale_timeout={stale_timeout_seconds}s, "
            f"sweep_interval={sweep_interval_seconds}s, {grid}"
        )

    @property
    def stale_timeout(self) -> timedelta:
        return self._stale_timeout

    @property
    def sweep_interval(self) -> float:
        return self._sweep_interval

    @property
    def track_count(self) -> int:
        with self._tracks_lock:
            return len(self._tracks)

    @property
    def is_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def on_report(self, report: Report) -> Optional[TrackSnapshot]:
        """
        Apply a report to the track of its vessel.

        Reports with an invalid mmsi or no position are dropped and counted.
        A CellChanged notification is published when the report moves the
        vessel into a different grid cell; it is published while the track
        lock is held so one vessel's notifications leave in report order.

        Args:
            report: Decoded report

        Returns:
            Snapshot of the updated track, None if the report was dropped
        """
        self._statistics.increment(self.COMPONENT, "Reports received")

        if report.mmsi is None or not MMSI_MIN <= report.mmsi <= MMSI_MAX:
            self._statistics.increment(self.COMPONENT, "Invalid mmsi")
            return None

        if report.position is None:
            self._statistics.increment(self.COMPONENT, "Missing position")
            return None

        cell_id = self._grid.cell_id(report.position)
        report = replace(report, timestamp=as_utc(report.timestamp))
        timestamp = report.timestamp

        while True:
            track = self._get_or_create(report.mmsi, timestamp)
            with track.lock:
                with self._tracks_lock:
                    evicted = self._tracks.get(report.mmsi) is not track
                if evicted:
                    # Swept between lookup and lock; start over with a fresh track
                    continue

                previous_cell_id = track.apply(report, cell_id)
                snapshot = track.snapshot()

                if previous_cell_id != cell_id:
                    self._statistics.increment(self.COMPONENT, "Cell changes")
                    self._dispatcher.publish(CellChanged(
                        track=snapshot,
                        previous_cell_id=previous_cell_id,
                        timestamp=timestamp
                    ))
                return snapshot

    def _get_or_create(self, mmsi: int, timestamp: datetime) -> Track:
        with self._tracks_lock:
            track = self._tracks.get(mmsi)
            if track is None:
                track = Track(mmsi=mmsi, timestamp=timestamp)
                self._tracks[mmsi] = track
                self._statistics.increment(self.COMPONENT, "Tracks created")
                logger.debug(f"Created track for MMSI {mmsi}")
            return track

    def get_track(self, mmsi: int) -> Optional[TrackSnapshot]:
        """Get a snapshot of one track, None if unknown."""
        with self._tracks_lock:
            track = self._tracks.get(mmsi)
        if track is None:
            return None
        with track.lock:
            return track.snapshot()

    def get_tracks(self) -> List[TrackSnapshot]:
        """Get snapshots of all tracks."""
        with self._tracks_lock:
            tracks = list(self._tracks.values())
        snapshots = []
        for track in tracks:
            with track.lock:
                snapshots.append(track.snapshot())
        return snapshots

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Evict every track inactive for longer than the stale timeout.

        Each evicted track produces exactly one TrackStale notification
        stamped with the sweep time.

        Args:
            now: Time of the sweep (defaults to the clock)

        Returns:
            Number of tracks evicted
        """
        now = as_utc(now or self._clock())

        with self._tracks_lock:
            candidates = list(self._tracks.values())

        evicted = 0
        for track in candidates:
            with track.lock:
                if now - track.timestamp <= self._stale_timeout:
                    continue
                with self._tracks_lock:
                    if self._tracks.get(track.mmsi) is not track:
                        continue
                    del self._tracks[track.mmsi]
                snapshot = track.snapshot()
                self._statistics.increment(self.COMPONENT, "Tracks stale")
                self._dispatcher.publish(TrackStale(track=snapshot, timestamp=now))
                evicted += 1

        if evicted:
            logger.debug(f"Evicted {evicted} stale tracks")
        return evicted

    def start(self) -> None:
        """Start the background staleness sweep."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            name="aisab_stale_sweeper",
            daemon=True
        )
        self._sweeper.start()
        logger.info("Staleness sweeper started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the background sweep.

        No new sweep cycle starts after this call; a sweep already in
        progress runs to completion before this returns.
        """
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None
            logger.info("Staleness sweeper stopped")

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self._sweep_interval):
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Staleness sweep failed: {e}", exc_info=True)

    def reset(self) -> None:
        """Drop all tracks without notifying anyone."""
        with self._tracks_lock:
            self._tracks.clear()
        logger.info("Track registry reset")

    def __repr__(self) -> str:
        return (
            f"TrackRegistry(tracks={self.track_count}, "
            f"stale_timeout={self._stale_timeout.total_seconds()}s)"
        )

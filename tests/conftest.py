"""Shared fixtures for the AisAB test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from aisab.config import AisabConfig, AnalysisConfig
from aisab.context import AnalyzerContext
from aisab.db.database import Database
from aisab.events.event_sink import InMemoryEventRepository
from aisab.stats.feature_data import SHIP_COUNT, FeatureData
from aisab.stats.feature_store import FeatureStore
from aisab.tracking.grid import Grid
from aisab.tracking.track import CellChanged, Position, Report, TrackSnapshot, TrackStale

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

MMSI = 219000123
CELL = 4242


def make_snapshot(**overrides) -> TrackSnapshot:
    """A cargo vessel of 120 m at 12 kn, course 95 degrees."""
    values = dict(
        mmsi=MMSI,
        timestamp=T0,
        position=Position(55.7, 12.6),
        cell_id=CELL,
        course_over_ground=95.0,
        speed_over_ground=12.0,
        true_heading=94.0,
        ship_type=70,
        ship_length=120,
        imo=9123456,
        callsign="OXYZ2",
        name="NORD STAR",
    )
    values.update(overrides)
    return TrackSnapshot(**values)


def make_report(**overrides) -> Report:
    values = dict(
        mmsi=MMSI,
        timestamp=T0,
        position=Position(55.7, 12.6),
        course_over_ground=95.0,
        speed_over_ground=12.0,
        true_heading=94.0,
        ship_type=70,
        ship_length=120,
        name="NORD STAR",
    )
    values.update(overrides)
    return Report(**values)


def cell_changed(track: TrackSnapshot = None, at: datetime = None) -> CellChanged:
    track = track or make_snapshot()
    return CellChanged(track=track, previous_cell_id=None, timestamp=at or track.timestamp)


def track_stale(track: TrackSnapshot = None, at: datetime = None) -> TrackStale:
    track = track or make_snapshot()
    return TrackStale(track=track, timestamp=at or track.timestamp + timedelta(minutes=31))


def feature_data(arity: int, counts: dict) -> FeatureData:
    """FeatureData with shipCount per key tuple."""
    data = FeatureData(arity)
    for keys, count in counts.items():
        data.set_statistic(*keys, SHIP_COUNT, count)
    return data


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def grid() -> Grid:
    return Grid(resolution=0.5)


@pytest.fixture
def feature_store() -> FeatureStore:
    return FeatureStore()


@pytest.fixture
def event_sink() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig(total_ship_count_threshold=1000, pd=0.001, ship_length_min=50)


@pytest.fixture
def context(feature_store, event_sink) -> AnalyzerContext:
    return AnalyzerContext.create(feature_store, event_sink, AisabConfig())


@pytest.fixture
def database(tmp_path) -> Database:
    db = Database(f"sqlite:///{tmp_path / 'aisab.db'}")
    db.create_tables()
    yield db
    db.close()

"""
AisAB - Analyzer Pipeline

Wires the analyzer together: track registry, notification dispatcher,
statistical analyses, optional statistics builder, behaviour manager and
persistence. Reports go in through process_report(); abnormal events
come out in the event sink.

Features:
- Analyses enabled and configured per kind
- Persistent (SQLAlchemy) or caller-supplied feature store and event sink
- Idempotent start/stop with graceful shutdown registration
- Status summary for the HTTP surface
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from aisab.analysis.course_over_ground import CourseOverGroundAnalysis
from aisab.analysis.feature_builder import FeatureStatisticsBuilder
from aisab.analysis.ship_type_and_size import ShipTypeAndSizeAnalysis
from aisab.analysis.speed_over_ground import SpeedOverGroundAnalysis
from aisab.analysis.statistical_analysis import StatisticalAnalysis
from aisab.config import AisabConfig
from aisab.context import AnalyzerContext
from aisab.core.shutdown import ShutdownHandler
from aisab.db.database import Database
from aisab.db.repository import EventRepository, FeatureDataRepository
from aisab.events.event_sink import EventSink
from aisab.stats.feature_store import FeatureStore
from aisab.tracking.grid import Grid
from aisab.tracking.track import Report, TrackSnapshot
from aisab.tracking.track_registry import TrackRegistry

# Configure module logger
logger = logging.getLogger(__name__)


class AnalyzerPipeline:
    """
    The assembled analyzer.

    Example:
        >>> pipeline = AnalyzerPipeline(AisabConfig.from_env())
        >>> pipeline.start()
        >>> pipeline.process_report(report)
        >>> pipeline.stop()
    """

    def __init__(
        self,
        config: Optional[AisabConfig] = None,
        feature_store: Optional[FeatureStore] = None,
        event_sink: Optional[EventSink] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Build the pipeline.

        A database is opened only if the feature store or the event sink
        is not supplied.

        Args:
            config: Configuration (defaults to AisabConfig())
            feature_store: Feature statistics (defaults to a database-backed store)
            event_sink: Event storage (defaults to the SQL event repository)
            clock: Time source of the staleness sweep
        """
        self.config = config or AisabConfig()

        self._database: Optional[Database] = None
        if feature_store is None or event_sink is None:
            self._database = Database(self.config.database.url, echo=self.config.database.echo)
            self._database.create_tables()
        if feature_store is None:
            feature_store = FeatureStore(FeatureDataRepository(self._database))
        if event_sink is None:
            event_sink = EventRepository(self._database)

        self.context = AnalyzerContext.create(
            feature_store=feature_store,
            event_sink=event_sink,
            config=self.config,
            max_workers=self.config.dispatcher.max_workers,
        )

        self.grid = Grid(self.config.grid.resolution)
        self.registry = TrackRegistry(
            dispatcher=self.context.dispatcher,
            statistics=self.context.statistics,
            grid=self.grid,
            stale_timeout_seconds=self.config.tracker.stale_timeout_seconds,
            sweep_interval_seconds=self.config.tracker.sweep_interval_seconds,
            clock=clock,
        )

        self.analyses: List[StatisticalAnalysis] = []
        for analysis_class, analysis_config in (
            (CourseOverGroundAnalysis, self.config.course_over_ground),
            (SpeedOverGroundAnalysis, self.config.speed_over_ground),
            (ShipTypeAndSizeAnalysis, self.config.ship_type_and_size),
        ):
            if not analysis_config.enabled:
                logger.info(f"{analysis_class.__name__} disabled")
                continue
            analysis = analysis_class(self.context, analysis_config)
            analysis.subscribe(self.context.dispatcher)
            self.analyses.append(analysis)

        self.builder: Optional[FeatureStatisticsBuilder] = None
        if self.config.build_statistics:
            self.builder = FeatureStatisticsBuilder(self.context)
            self.builder.subscribe(self.context.dispatcher)

        self._lock = threading.Lock()
        self._running = False
        self._stopped = False
        self._started_at: Optional[datetime] = None

        logger.info(f"AnalyzerPipeline initialized with {len(self.analyses)} analyses")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def statistics(self):
        return self.context.statistics

    @property
    def event_sink(self) -> EventSink:
        return self.context.event_sink

    @property
    def feature_store(self) -> FeatureStore:
        return self.context.feature_store

    @property
    def behaviour_manager(self):
        return self.context.behaviour_manager

    def start(self) -> None:
        """Start the staleness sweep."""
        with self._lock:
            if self._running:
                logger.warning("AnalyzerPipeline already running")
                return
            if self._stopped:
                raise RuntimeError("AnalyzerPipeline cannot be restarted after stop()")
            self.registry.start()
            self._running = True
            self._started_at = datetime.now()
        logger.info("AnalyzerPipeline started")

    def process_report(self, report: Report) -> Optional[TrackSnapshot]:
        """
        Feed one report.

        Returns:
            Snapshot of the updated track, None if the report was dropped
        """
        return self.registry.on_report(report)

    def stop(self) -> None:
        """
        Stop the pipeline.

        The sweep stops first (an in-flight sweep completes), then queued
        notifications drain, pending statistics are flushed and the
        database is closed. Safe to call more than once.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._running = False

        logger.info("Stopping AnalyzerPipeline...")
        self.registry.stop()
        self.context.dispatcher.shutdown(wait=True)

        if self.builder is not None:
            try:
                self.builder.flush()
            except Exception as e:
                logger.error(f"Final statistics flush failed: {e}")

        self.context.statistics.log_summary()

        if self._database is not None:
            self._database.close()
        logger.info("AnalyzerPipeline stopped")

    def register_shutdown(self, handler: ShutdownHandler) -> None:
        """Stop this pipeline when the handler shuts down."""
        handler.register("analyzer pipeline", self.stop)

    def get_status(self) -> dict:
        """Summary for monitoring."""
        return {
            "running": self._running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": round(self.context.statistics.uptime_seconds, 1),
            "tracks": self.registry.track_count,
            "analyses": [a.name for a in self.analyses],
            "building_statistics": self.builder is not None,
            "dispatcher_workers": self.config.dispatcher.max_workers,
            "grid_resolution": self.grid.resolution,
        }

    def __repr__(self) -> str:
        return (
            f"AnalyzerPipeline(analyses={len(self.analyses)}, "
            f"tracks={self.registry.track_count}, running={self._running})"
        )

"""
AisAB - Analyzer Context

The shared collaborators of the analyzer, built once at startup and
handed to every component constructor.
"""

from dataclasses import dataclass, field
from typing import Optional

from aisab.behaviour.behaviour_manager import BehaviourManager
from aisab.config import AisabConfig
from aisab.core.dispatcher import NotificationDispatcher
from aisab.core.statistics import AppStatistics
from aisab.events.event_sink import EventSink
from aisab.stats.feature_store import FeatureStore


@dataclass
class AnalyzerContext:
    """
    Attributes:
        statistics: Operational counters
        dispatcher: Notification routing from the registry to the analyses
        feature_store: Per-cell feature statistics
        event_sink: Durable event storage
        behaviour_manager: Event state machine fed by the analyses
        config: Startup configuration
    """
    statistics: AppStatistics
    dispatcher: NotificationDispatcher
    feature_store: FeatureStore
    event_sink: EventSink
    behaviour_manager: BehaviourManager
    config: AisabConfig = field(default_factory=AisabConfig)

    @classmethod
    def create(
        cls,
        feature_store: FeatureStore,
        event_sink: EventSink,
        config: Optional[AisabConfig] = None,
        max_workers: int = 0
    ) -> "AnalyzerContext":
        """
        Build a context around a store and a sink.

        Args:
            feature_store: Per-cell statistics
            event_sink: Durable event storage
            config: Configuration (defaults to AisabConfig())
            max_workers: Dispatcher worker threads (0 = synchronous delivery)
        """
        statistics = AppStatistics()
        return cls(
            statistics=statistics,
            dispatcher=NotificationDispatcher(max_workers=max_workers),
            feature_store=feature_store,
            event_sink=event_sink,
            behaviour_manager=BehaviourManager(event_sink, statistics),
            config=config or AisabConfig(),
        )

"""
AisAB - AIS Abnormal Behaviour Analyzer
Behaviour Manager Module

Turns the stream of judgments produced by the analyses into abnormal
event lifecycles. For every (vessel, event kind) pair the manager keeps
a two-state machine:

    NONE    + abnormal        -> ONGOING  (raise)
    ONGOING + abnormal        -> ONGOING  (maintain)
    ONGOING + normal / stale  -> NONE     (lower)
    NONE    + normal / stale  -> NONE     (no-op)

The durable event sink is the authority on the current state: before
each decision the manager looks up the ongoing event, and the lookup,
decision and write run under a lock keyed by (mmsi, kind). A failed
write leaves storage untouched, so the next judgment starts again from
the last durable state.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from aisab.core.locks import KeyedLock
from aisab.core.statistics import AppStatistics
from aisab.events.event_sink import EventSink
from aisab.events.event_types import (
    AbnormalEvent,
    EventCertainty,
    EventKind,
    create_abnormal_event,
    create_tracking_point
)
from aisab.tracking.track import TrackSnapshot

# Configure module logger
logger = logging.getLogger(__name__)


class Verdict(Enum):
    """Outcome of one analysis of one track."""
    ABNORMAL = "abnormal"
    NORMAL = "normal"
    STALE = "stale"


class Transition(Enum):
    """What a judgment did to the state machine."""
    RAISED = "raised"
    MAINTAINED = "maintained"
    LOWERED = "lowered"
    NONE = "none"
    FAILED = "failed"


@dataclass(frozen=True)
class Judgment:
    """
    A verdict of one analysis about one track at one instant.

    Attributes:
        kind: Event kind of the analysis
        verdict: Abnormal, normal or stale
        track: Snapshot the verdict was made on
        timestamp: Time of the judgment (report time, or sweep time for stale)
        payload: Bucket values behind the verdict
        title: Event title used if the judgment raises an event
        description: Event description used if the judgment raises an event
    """
    kind: EventKind
    verdict: Verdict
    track: TrackSnapshot
    timestamp: datetime
    payload: Dict[str, Any] = field(default_factory=dict)
    title: str = ""
    description: str = ""

    @property
    def mmsi(self) -> int:
        return self.track.mmsi

    @property
    def is_abnormal(self) -> bool:
        return self.verdict is Verdict.ABNORMAL


class BehaviourManager:
    """
    Per-(vessel, kind) raise/maintain/lower state machine.

    Judgments for different vessels, or different kinds of the same
    vessel, are handled fully in parallel.

    Example:
        >>> manager = BehaviourManager(event_sink, statistics)
        >>> manager.submit(Judgment(EventKind.SPEED_OVER_GROUND, Verdict.ABNORMAL, track, now))
        <Transition.RAISED: 'raised'>
    """

    COMPONENT = "BehaviourManager"

    def __init__(self, event_sink: EventSink, statistics: AppStatistics):
        """
        Initialize the behaviour manager.

        Args:
            event_sink: Durable event storage, authoritative for ONGOING state
            statistics: Counter sink for transitions and failures
        """
        self._sink = event_sink
        self._statistics = statistics
        self._locks: KeyedLock[Tuple[int, EventKind]] = KeyedLock()

        self._certainties: Dict[Tuple[int, EventKind], EventCertainty] = {}
        self._certainties_lock = threading.Lock()

        logger.info(f"BehaviourManager initialized with sink {type(event_sink).__name__}")

    def submit(self, judgment: Judgment) -> Transition:
        """
        Apply one judgment.

        Never raises: sink failures are logged, counted and reported as
        Transition.FAILED, leaving state as it was.

        Args:
            judgment: Judgment from an analysis

        Returns:
            The transition that was durably applied
        """
        key = (judgment.mmsi, judgment.kind)
        self._statistics.increment(self.COMPONENT, "Judgments received")

        with self._locks.hold(key):
            try:
                ongoing = self._sink.find_ongoing_event(judgment.mmsi, judgment.kind)
            except Exception as e:
                self._statistics.increment(self.COMPONENT, "Lookup failures")
                logger.error(
                    f"Could not look up ongoing {judgment.kind.value} event for MMSI {judgment.mmsi}: {e}"
                )
                return Transition.FAILED

            if judgment.is_abnormal:
                if ongoing is None:
                    event = self._raise(judgment)
                    transition, certainty = Transition.RAISED, EventCertainty.RAISED
                else:
                    event = self._maintain(ongoing, judgment)
                    transition, certainty = Transition.MAINTAINED, EventCertainty.MAINTAINED
            else:
                if ongoing is None:
                    if judgment.verdict is Verdict.STALE:
                        self._forget(key)
                    return Transition.NONE
                event = self._lower(ongoing, judgment)
                transition, certainty = Transition.LOWERED, EventCertainty.LOWERED

            try:
                self._sink.save(event)
            except Exception as e:
                self._statistics.increment(self.COMPONENT, "Save failures")
                logger.error(
                    f"Could not persist {transition.value} {event.kind.value} event "
                    f"{event.event_id} of MMSI {judgment.mmsi}: {e}"
                )
                return Transition.FAILED

            if judgment.verdict is Verdict.STALE:
                self._forget(key)
            else:
                with self._certainties_lock:
                    self._certainties[key] = certainty

        self._statistics.increment(self.COMPONENT, f"Events {transition.value}")
        if transition is Transition.MAINTAINED:
            logger.debug(f"Maintained {event.kind.value} event {event.event_id} of MMSI {judgment.mmsi}")
        else:
            logger.info(
                f"{transition.value.capitalize()} {event.kind.value} event {event.event_id} "
                f"of MMSI {judgment.mmsi} at {judgment.timestamp.isoformat()}"
            )
        return transition

    def _raise(self, judgment: Judgment) -> AbnormalEvent:
        return create_abnormal_event(
            kind=judgment.kind,
            track=judgment.track,
            start_time=judgment.timestamp,
            title=judgment.title,
            description=judgment.description,
            payload=judgment.payload,
        )

    def _maintain(self, event: AbnormalEvent, judgment: Judgment) -> AbnormalEvent:
        if judgment.track.position is not None:
            event.add_tracking_point(
                create_tracking_point(judgment.track, EventCertainty.MAINTAINED)
            )
        return event

    def _lower(self, event: AbnormalEvent, judgment: Judgment) -> AbnormalEvent:
        if judgment.track.position is not None:
            event.add_tracking_point(
                create_tracking_point(judgment.track, EventCertainty.LOWERED)
            )
        event.close(judgment.timestamp)
        return event

    def _forget(self, key: Tuple[int, EventKind]) -> None:
        # A stale track is gone, so nothing more will be reported for it
        with self._certainties_lock:
            self._certainties.pop(key, None)

    def get_event_certainty(self, kind: EventKind, mmsi: int) -> EventCertainty:
        """
        Certainty of the last durably applied transition.

        UNDEFINED if the vessel never raised an event of this kind, or
        once its track went stale.
        """
        with self._certainties_lock:
            return self._certainties.get((mmsi, kind), EventCertainty.UNDEFINED)

    def find_ongoing_event(self, mmsi: int, kind: EventKind) -> Optional[AbnormalEvent]:
        return self._sink.find_ongoing_event(mmsi, kind)

    @property
    def tracked_count(self) -> int:
        """Number of (vessel, kind) pairs with a remembered certainty."""
        with self._certainties_lock:
            return len(self._certainties)

    @property
    def event_sink(self) -> EventSink:
        return self._sink

    def __repr__(self) -> str:
        return f"BehaviourManager(sink={type(self._sink).__name__}, tracked={self.tracked_count})"

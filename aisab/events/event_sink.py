"""
AisAB - AIS Abnormal Behaviour Analyzer
Event Sink Module

Interface of the durable event archive plus a thread-safe in-memory
implementation used for tests and for running without a database.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from aisab.events.event_types import AbnormalEvent, EventKind

# Configure module logger
logger = logging.getLogger(__name__)


class EventSink(ABC):
    """
    Durable storage of abnormal events.

    Implementations must make save() an idempotent upsert keyed by
    event id and must return detached copies from every lookup.
    """

    @abstractmethod
    def save(self, event: AbnormalEvent) -> None:
        """Insert or update an event with all its tracking points."""

    @abstractmethod
    def find_ongoing_event(self, mmsi: int, kind: EventKind) -> Optional[AbnormalEvent]:
        """The ONGOING event of a vessel for one kind, None if there is none."""

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[AbnormalEvent]:
        """Look up one event by id."""

    @abstractmethod
    def find_recent_events(self, limit: int = 100) -> List[AbnormalEvent]:
        """Most recently started events, newest first."""

    @abstractmethod
    def find_events_by_from_and_to(self, start: datetime, end: datetime) -> List[AbnormalEvent]:
        """Events active at some time within [start, end], oldest first."""

    @abstractmethod
    def get_event_kinds(self) -> List[str]:
        """Distinct kinds present in storage."""


def _overlaps(event: AbnormalEvent, start: datetime, end: datetime) -> bool:
    if event.start_time > end:
        return False
    return event.end_time is None or event.end_time >= start


class InMemoryEventRepository(EventSink):
    """
    Event sink keeping events in a dictionary.

    Every call copies events in and out so callers can never mutate
    stored state.

    Example:
        >>> sink = InMemoryEventRepository()
        >>> sink.save(event)
        >>> sink.find_ongoing_event(event.vessel.mmsi, event.kind)
    """

    def __init__(self):
        self._events: Dict[str, AbnormalEvent] = {}
        self._lock = threading.Lock()
        self._save_count = 0

    @property
    def save_count(self) -> int:
        """Number of save() calls since creation."""
        with self._lock:
            return self._save_count

    def save(self, event: AbnormalEvent) -> None:
        stored = copy.deepcopy(event)
        with self._lock:
            self._events[event.event_id] = stored
            self._save_count += 1
        logger.debug(f"Saved event {event.event_id} ({event.state.value})")

    def find_ongoing_event(self, mmsi: int, kind: EventKind) -> Optional[AbnormalEvent]:
        with self._lock:
            ongoing = [
                e for e in self._events.values()
                if e.vessel.mmsi == mmsi and e.kind is kind and e.is_ongoing
            ]
            ongoing.sort(key=lambda e: e.start_time)
            if len(ongoing) > 1:
                logger.warning(
                    f"Found {len(ongoing)} ongoing {kind.value} events for MMSI {mmsi}; using the first"
                )
            return copy.deepcopy(ongoing[0]) if ongoing else None

    def get_event(self, event_id: str) -> Optional[AbnormalEvent]:
        with self._lock:
            event = self._events.get(event_id)
            return copy.deepcopy(event) if event else None

    def find_recent_events(self, limit: int = 100) -> List[AbnormalEvent]:
        with self._lock:
            events = sorted(self._events.values(), key=lambda e: e.start_time, reverse=True)
            return copy.deepcopy(events[:limit])

    def find_events_by_from_and_to(self, start: datetime, end: datetime) -> List[AbnormalEvent]:
        with self._lock:
            events = [e for e in self._events.values() if _overlaps(e, start, end)]
            events.sort(key=lambda e: e.start_time)
            return copy.deepcopy(events)

    def get_event_kinds(self) -> List[str]:
        with self._lock:
            return sorted({e.kind.value for e in self._events.values()})

    def find_all(self) -> List[AbnormalEvent]:
        with self._lock:
            return copy.deepcopy(list(self._events.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __repr__(self) -> str:
        return f"InMemoryEventRepository(events={len(self)})"

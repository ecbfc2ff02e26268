"""
AisAB - Events Module

Abnormal event domain types and the event sink interface.
"""

from aisab.events.event_types import (
    AbnormalEvent,
    EventCertainty,
    EventKind,
    EventState,
    TrackingPoint,
    Vessel,
    create_abnormal_event,
    create_tracking_point
)
from aisab.events.event_sink import EventSink, InMemoryEventRepository

__all__ = [
    "AbnormalEvent",
    "EventCertainty",
    "EventKind",
    "EventState",
    "TrackingPoint",
    "Vessel",
    "create_abnormal_event",
    "create_tracking_point",
    "EventSink",
    "InMemoryEventRepository",
]

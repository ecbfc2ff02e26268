"""
AisAB - AIS Abnormal Behaviour Analyzer
Event Types Module

Domain model of abnormal events: one AbnormalEvent per anomaly episode,
tagged with the kind of analysis that raised it, plus the factory
functions the BehaviourManager uses to build events and tracking points.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from aisab.tracking.track import TrackSnapshot


class EventKind(Enum):
    """Analysis that raised an event; stored in the kind column."""
    COURSE_OVER_GROUND = "CourseOverGroundEvent"
    SPEED_OVER_GROUND = "SpeedOverGroundEvent"
    SHIP_TYPE_AND_SIZE = "ShipTypeAndSizeEvent"


class EventState(Enum):
    ONGOING = "ONGOING"
    PAST = "PAST"


class EventCertainty(Enum):
    """Role of a tracking point in its event; UNDEFINED means no event."""
    UNDEFINED = "UNDEFINED"
    RAISED = "RAISED"
    MAINTAINED = "MAINTAINED"
    LOWERED = "LOWERED"


@dataclass(frozen=True)
class Vessel:
    """Identity of the vessel an event concerns."""
    mmsi: int
    imo: Optional[int] = None
    callsign: Optional[str] = None
    name: Optional[str] = None
    ship_type: Optional[int] = None
    ship_length: Optional[int] = None

    @classmethod
    def from_track(cls, track: TrackSnapshot) -> "Vessel":
        return cls(
            mmsi=track.mmsi,
            imo=track.imo,
            callsign=track.callsign,
            name=track.name,
            ship_type=track.ship_type,
            ship_length=track.ship_length,
        )


@dataclass(frozen=True)
class TrackingPoint:
    """A vessel position recorded while an event was ongoing."""
    timestamp: datetime
    latitude: float
    longitude: float
    speed_over_ground: Optional[float]
    course_over_ground: Optional[float]
    heading: Optional[float]
    interpolated: bool
    certainty: EventCertainty

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "sog": self.speed_over_ground,
            "cog": self.course_over_ground,
            "heading": self.heading,
            "interpolated": self.interpolated,
            "certainty": self.certainty.value,
        }


@dataclass
class AbnormalEvent:
    """
    One anomaly episode of one vessel.

    Attributes:
        event_id: Unique id (uuid4 string)
        kind: Analysis that raised the event
        vessel: Vessel identity at raise time
        start_time: Time of the raising judgment
        state: ONGOING until lowered, PAST afterwards
        end_time: Time of the lowering judgment
        tracking_points: Positions in chronological order
        payload: Bucket values of the raising judgment
    """
    event_id: str
    kind: EventKind
    vessel: Vessel
    start_time: datetime
    state: EventState = EventState.ONGOING
    end_time: Optional[datetime] = None
    title: str = ""
    description: str = ""
    tracking_points: List[TrackingPoint] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_ongoing(self) -> bool:
        return self.state is EventState.ONGOING

    def add_tracking_point(self, point: TrackingPoint) -> None:
        self.tracking_points.append(point)

    def close(self, end_time: datetime) -> None:
        """Mark the event PAST as of end_time."""
        self.end_time = end_time
        self.state = EventState.PAST

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_id": self.event_id,
            "kind": self.kind.value,
            "state": self.state.value,
            "mmsi": self.vessel.mmsi,
            "imo": self.vessel.imo,
            "callsign": self.vessel.callsign,
            "name": self.vessel.name,
            "ship_type": self.vessel.ship_type,
            "ship_length": self.vessel.ship_length,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "title": self.title,
            "description": self.description,
            "payload": dict(self.payload),
            "tracking_points": [p.to_dict() for p in self.tracking_points],
        }


def create_tracking_point(track: TrackSnapshot, certainty: EventCertainty) -> TrackingPoint:
    """
    Build a tracking point from the track's current position.

    Raises:
        ValueError: If the track has no position
    """
    if track.position is None:
        raise ValueError(f"Track {track.mmsi} has no position")
    return TrackingPoint(
        timestamp=track.timestamp,
        latitude=track.position.latitude,
        longitude=track.position.longitude,
        speed_over_ground=track.speed_over_ground,
        course_over_ground=track.course_over_ground,
        heading=track.true_heading,
        interpolated=track.position_interpolated,
        certainty=certainty,
    )


def create_abnormal_event(
    kind: EventKind,
    track: TrackSnapshot,
    start_time: datetime,
    title: str = "",
    description: str = "",
    payload: Optional[Dict[str, Any]] = None
) -> AbnormalEvent:
    """
    Build a new ONGOING event whose first tracking point is RAISED.

    Args:
        kind: Analysis raising the event
        track: Snapshot the raising judgment was made on
        start_time: Time of the raising judgment
        title: Short headline
        description: Human readable explanation
        payload: Bucket values of the judgment

    Returns:
        New AbnormalEvent with a fresh event id
    """
    event = AbnormalEvent(
        event_id=str(uuid.uuid4()),
        kind=kind,
        vessel=Vessel.from_track(track),
        start_time=start_time,
        title=title,
        description=description,
        payload=dict(payload or {}),
    )
    if track.position is not None:
        event.add_tracking_point(create_tracking_point(track, EventCertainty.RAISED))
    return event

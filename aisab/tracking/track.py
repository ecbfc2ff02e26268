"""
AisAB - AIS Abnormal Behaviour Analyzer
Tracking Module - Shared Types

This module defines the per-vessel track, the immutable snapshot the
analyses work on, the typed report consumed by the registry and the
notifications the registry publishes.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Position:
    """A WGS84 position in decimal degrees."""
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"({self.latitude:.4f}, {self.longitude:.4f})"


@dataclass(frozen=True)
class Report:
    """
    A decoded kinematic/static report for one vessel.

    Attributes:
        mmsi: Vessel identifier
        timestamp: Time of the report
        position: Reported position (mandatory for tracking)
        course_over_ground: Degrees, 0-360
        speed_over_ground: Knots
        true_heading: Degrees, 0-359
        ship_type: AIS ship and cargo type code
        ship_length: Length overall in metres
        imo: IMO number
        callsign: Radio callsign
        name: Ship name
        is_class_b: Report came from a class B transponder
        position_interpolated: Position was predicted rather than received
    """
    mmsi: int
    timestamp: datetime
    position: Optional[Position] = None
    course_over_ground: Optional[float] = None
    speed_over_ground: Optional[float] = None
    true_heading: Optional[float] = None
    ship_type: Optional[int] = None
    ship_length: Optional[int] = None
    imo: Optional[int] = None
    callsign: Optional[str] = None
    name: Optional[str] = None
    is_class_b: bool = False
    position_interpolated: bool = False


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Consistent read-only copy of a track taken under its lock.

    Every field reflects the same report; analyses never see a mix of
    two updates.
    """
    mmsi: int
    timestamp: datetime
    position: Optional[Position] = None
    cell_id: Optional[int] = None
    course_over_ground: Optional[float] = None
    speed_over_ground: Optional[float] = None
    true_heading: Optional[float] = None
    ship_type: Optional[int] = None
    ship_length: Optional[int] = None
    imo: Optional[int] = None
    callsign: Optional[str] = None
    name: Optional[str] = None
    is_class_b: bool = False
    position_interpolated: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "mmsi": self.mmsi,
            "timestamp": self.timestamp.isoformat(),
            "latitude": self.position.latitude if self.position else None,
            "longitude": self.position.longitude if self.position else None,
            "cell_id": self.cell_id,
            "cog": self.course_over_ground,
            "sog": self.speed_over_ground,
            "heading": self.true_heading,
            "ship_type": self.ship_type,
            "ship_length": self.ship_length,
            "imo": self.imo,
            "callsign": self.callsign,
            "name": self.name,
            "class_b": self.is_class_b,
            "interpolated": self.position_interpolated,
        }


@dataclass
class Track:
    """
    Mutable state of one vessel.

    Created on the first report of an unseen mmsi and updated in place.
    All mutation and snapshotting goes through the track's own lock.

    Attributes:
        mmsi: Vessel identifier
        timestamp: Time of the most recent report
        position: Most recent position
        cell_id: Grid cell of the most recent position
        update_count: Reports applied to this track
    """
    mmsi: int
    timestamp: datetime
    position: Optional[Position] = None
    cell_id: Optional[int] = None
    course_over_ground: Optional[float] = None
    speed_over_ground: Optional[float] = None
    true_heading: Optional[float] = None
    ship_type: Optional[int] = None
    ship_length: Optional[int] = None
    imo: Optional[int] = None
    callsign: Optional[str] = None
    name: Optional[str] = None
    is_class_b: bool = False
    position_interpolated: bool = False
    update_count: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def apply(self, report: Report, cell_id: int) -> Optional[int]:
        """
        Apply a report. Caller must hold the track lock.

        Static attributes absent from the report keep their previous values.

        Returns:
            The previous cell id
        """
        previous_cell_id = self.cell_id

        self.timestamp = report.timestamp
        self.position = report.position
        self.cell_id = cell_id
        self.position_interpolated = report.position_interpolated
        self.is_class_b = report.is_class_b

        # Kinematics describe the current report only
        self.course_over_ground = report.course_over_ground
        self.speed_over_ground = report.speed_over_ground
        self.true_heading = report.true_heading

        if report.ship_type is not None:
            self.ship_type = report.ship_type
        if report.ship_length is not None:
            self.ship_length = report.ship_length
        if report.imo is not None:
            self.imo = report.imo
        if report.callsign is not None:
            self.callsign = report.callsign
        if report.name is not None:
            self.name = report.name

        self.update_count += 1
        return previous_cell_id

    def snapshot(self) -> TrackSnapshot:
        """Copy the current state. Caller must hold the track lock."""
        return TrackSnapshot(
            mmsi=self.mmsi,
            timestamp=self.timestamp,
            position=self.position,
            cell_id=self.cell_id,
            course_over_ground=self.course_over_ground,
            speed_over_ground=self.speed_over_ground,
            true_heading=self.true_heading,
            ship_type=self.ship_type,
            ship_length=self.ship_length,
            imo=self.imo,
            callsign=self.callsign,
            name=self.name,
            is_class_b=self.is_class_b,
            position_interpolated=self.position_interpolated,
        )


@dataclass(frozen=True)
class CellChanged:
    """Published when a track moves into a different grid cell."""
    track: TrackSnapshot
    previous_cell_id: Optional[int]
    timestamp: datetime


@dataclass(frozen=True)
class TrackStale:
    """Published once when a track is evicted for inactivity."""
    track: TrackSnapshot
    timestamp: datetime

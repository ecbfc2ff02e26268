"""
AisAB - Database Models
SQLAlchemy ORM Models for Abnormal Events and Feature Statistics

Tables:
- abnormal_events: One row per anomaly episode, tagged with its kind
- tracking_points: Ordered vessel positions recorded during an episode
- feature_data: Nested counters per (feature name, grid cell)
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, BigInteger, String, Float, Boolean,
    DateTime, Text, JSON, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from aisab.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AbnormalEventModel(Base):
    """
    Abnormal event record.

    A single table holds every event kind; lookups filter on the
    kind column.
    """
    __tablename__ = "abnormal_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), unique=True, nullable=False)

    kind = Column(String(40), nullable=False, index=True)
    state = Column(String(10), nullable=False)  # ONGOING, PAST

    # Vessel
    mmsi = Column(Integer, nullable=False, index=True)
    imo = Column(Integer, nullable=True)
    callsign = Column(String(20), nullable=True)
    name = Column(String(100), nullable=True)
    ship_type = Column(Integer, nullable=True)
    ship_length = Column(Integer, nullable=True)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    payload = Column(JSON, nullable=True)  # Bucket values of the judgment

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    tracking_points = relationship(
        "TrackingPointModel",
        back_populates="event",
        order_by="TrackingPointModel.seq",
        cascade="all, delete-orphan"
    )

    # Indexes for the ongoing-event lookup
    __table_args__ = (
        Index('ix_abnormal_events_mmsi_kind_state', 'mmsi', 'kind', 'state'),
    )


class TrackingPointModel(Base):
    """One vessel position recorded while an event was ongoing."""
    __tablename__ = "tracking_points"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), ForeignKey("abnormal_events.event_id"), nullable=False, index=True)
    event = relationship("AbnormalEventModel", back_populates="tracking_points")

    seq = Column(Integer, nullable=False)  # Position in the event's point list
    timestamp = Column(DateTime(timezone=True), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    speed_over_ground = Column(Float, nullable=True)
    course_over_ground = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
    interpolated = Column(Boolean, nullable=False, default=False)
    certainty = Column(String(20), nullable=False)  # RAISED, MAINTAINED, LOWERED

    __table_args__ = (
        UniqueConstraint('event_id', 'seq', name='uq_tracking_points_event_seq'),
    )


class FeatureDataModel(Base):
    """Counters of one feature in one grid cell, stored as JSON."""
    __tablename__ = "feature_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    feature_name = Column(String(100), nullable=False, index=True)
    cell_id = Column(BigInteger, nullable=False)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint('feature_name', 'cell_id', name='uq_feature_data_name_cell'),
    )

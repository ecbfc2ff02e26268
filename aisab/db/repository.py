"""
AisAB - Database Repository Layer
Data Access for Abnormal Events and Feature Statistics

Each operation runs in its own session so repositories can be shared
between threads. SQLAlchemy failures are re-raised as AisAB errors.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, or_
from sqlalchemy.exc import SQLAlchemyError

from aisab.core.errors import EventPersistenceError, FeatureStoreError
from aisab.db.database import Database
from aisab.db.models import AbnormalEventModel, FeatureDataModel, TrackingPointModel
from aisab.events.event_sink import EventSink
from aisab.events.event_types import (
    AbnormalEvent,
    EventCertainty,
    EventKind,
    EventState,
    TrackingPoint,
    Vessel
)
from aisab.stats.feature_data import FeatureData
from aisab.tracking.track_registry import as_utc

# Configure module logger
logger = logging.getLogger(__name__)


def _optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _to_event(model: AbnormalEventModel) -> AbnormalEvent:
    """Detach an event row (and its points) into the domain type."""
    return AbnormalEvent(
        event_id=model.event_id,
        kind=EventKind(model.kind),
        vessel=Vessel(
            mmsi=model.mmsi,
            imo=model.imo,
            callsign=model.callsign,
            name=model.name,
            ship_type=model.ship_type,
            ship_length=model.ship_length,
        ),
        start_time=as_utc(model.start_time),
        state=EventState(model.state),
        end_time=_optional_utc(model.end_time),
        title=model.title or "",
        description=model.description or "",
        tracking_points=[
            TrackingPoint(
                timestamp=as_utc(p.timestamp),
                latitude=p.latitude,
                longitude=p.longitude,
                speed_over_ground=p.speed_over_ground,
                course_over_ground=p.course_over_ground,
                heading=p.heading,
                interpolated=p.interpolated,
                certainty=EventCertainty(p.certainty),
            )
            for p in model.tracking_points
        ],
        payload=dict(model.payload or {}),
    )


class EventRepository(EventSink):
    """
    SQL event archive.

    Example:
        >>> repo = EventRepository(database)
        >>> repo.save(event)
        >>> repo.find_ongoing_event(219000123, EventKind.SPEED_OVER_GROUND)
    """

    def __init__(self, database: Database):
        self._database = database

    def save(self, event: AbnormalEvent) -> None:
        """
        Insert or update an event.

        Tracking points already stored are kept; points beyond the stored
        count are appended in order.

        Raises:
            EventPersistenceError: If the database rejects the write
        """
        try:
            with self._database.session() as session:
                model = session.query(AbnormalEventModel).filter(
                    AbnormalEventModel.event_id == event.event_id
                ).one_or_none()

                if model is None:
                    model = AbnormalEventModel(event_id=event.event_id)
                    session.add(model)

                model.kind = event.kind.value
                model.state = event.state.value
                model.mmsi = event.vessel.mmsi
                model.imo = event.vessel.imo
                model.callsign = event.vessel.callsign
                model.name = event.vessel.name
                model.ship_type = event.vessel.ship_type
                model.ship_length = event.vessel.ship_length
                model.start_time = event.start_time
                model.end_time = event.end_time
                model.title = event.title
                model.description = event.description
                model.payload = dict(event.payload)

                stored = len(model.tracking_points)
                for seq, point in enumerate(event.tracking_points[stored:], start=stored):
                    model.tracking_points.append(TrackingPointModel(
                        seq=seq,
                        timestamp=point.timestamp,
                        latitude=point.latitude,
                        longitude=point.longitude,
                        speed_over_ground=point.speed_over_ground,
                        course_over_ground=point.course_over_ground,
                        heading=point.heading,
                        interpolated=point.interpolated,
                        certainty=point.certainty.value
                    ))
        except SQLAlchemyError as e:
            raise EventPersistenceError(f"Failed to save event {event.event_id}: {e}") from e

        logger.debug(f"Saved event {event.event_id} ({event.state.value})")

    def find_ongoing_event(self, mmsi: int, kind: EventKind) -> Optional[AbnormalEvent]:
        """
        Find the ongoing event of a vessel.

        More than one ongoing event breaks a storage invariant; it is
        logged and the oldest one is used.
        """
        try:
            with self._database.session() as session:
                models = session.query(AbnormalEventModel).filter(
                    AbnormalEventModel.mmsi == mmsi,
                    AbnormalEventModel.kind == kind.value,
                    AbnormalEventModel.state == EventState.ONGOING.value
                ).order_by(AbnormalEventModel.start_time).all()

                if len(models) > 1:
                    logger.warning(
                        f"Found {len(models)} ongoing {kind.value} events for MMSI {mmsi}; using the first"
                    )
                return _to_event(models[0]) if models else None
        except SQLAlchemyError as e:
            raise EventPersistenceError(f"Failed to look up ongoing event of {mmsi}: {e}") from e

    def get_event(self, event_id: str) -> Optional[AbnormalEvent]:
        """Get event by event_id."""
        try:
            with self._database.session() as session:
                model = session.query(AbnormalEventModel).filter(
                    AbnormalEventModel.event_id == event_id
                ).one_or_none()
                return _to_event(model) if model else None
        except SQLAlchemyError as e:
            raise EventPersistenceError(f"Failed to load event {event_id}: {e}") from e

    def find_recent_events(self, limit: int = 100) -> List[AbnormalEvent]:
        """
        Get recent events.

        Args:
            limit: Maximum events to return

        Returns:
            Events, newest first
        """
        try:
            with self._database.session() as session:
                models = session.query(AbnormalEventModel).order_by(
                    desc(AbnormalEventModel.start_time)
                ).limit(limit).all()
                return [_to_event(m) for m in models]
        except SQLAlchemyError as e:
            raise EventPersistenceError(f"Failed to load recent events: {e}") from e

    def find_events_by_from_and_to(self, start: datetime, end: datetime) -> List[AbnormalEvent]:
        """Events that were ongoing at some time between start and end."""
        start, end = as_utc(start), as_utc(end)
        try:
            with self._database.session() as session:
                models = session.query(AbnormalEventModel).filter(
                    AbnormalEventModel.start_time <= end,
                    or_(
                        AbnormalEventModel.end_time.is_(None),
                        AbnormalEventModel.end_time >= start
                    )
                ).order_by(AbnormalEventModel.start_time).all()
                return [_to_event(m) for m in models]
        except SQLAlchemyError as e:
            raise EventPersistenceError(f"Failed to load events between {start} and {end}: {e}") from e

    def get_event_kinds(self) -> List[str]:
        try:
            with self._database.session() as session:
                rows = session.query(AbnormalEventModel.kind).distinct().all()
                return sorted(row[0] for row in rows)
        except SQLAlchemyError as e:
            raise EventPersistenceError(f"Failed to load event kinds: {e}") from e

    def count(self) -> int:
        """Get total event count."""
        with self._database.session() as session:
            return session.query(AbnormalEventModel).count()


class FeatureDataRepository:
    """
    Backing store of the FeatureStore.

    Example:
        >>> repo = FeatureDataRepository(database)
        >>> repo.put("SpeedOverGroundStatistic", 209183, data)
        >>> repo.get("SpeedOverGroundStatistic", 209183)
    """

    def __init__(self, database: Database):
        self._database = database

    def get(self, feature_name: str, cell_id: int) -> Optional[FeatureData]:
        """Load the counters of one cell, None if never stored."""
        try:
            with self._database.session() as session:
                model = session.query(FeatureDataModel).filter(
                    FeatureDataModel.feature_name == feature_name,
                    FeatureDataModel.cell_id == cell_id
                ).one_or_none()
                return FeatureData.from_dict(model.data) if model else None
        except SQLAlchemyError as e:
            raise FeatureStoreError(f"Failed to load {feature_name}/{cell_id}: {e}") from e

    def put(self, feature_name: str, cell_id: int, data: FeatureData) -> None:
        """Replace the counters of one cell."""
        try:
            with self._database.session() as session:
                model = session.query(FeatureDataModel).filter(
                    FeatureDataModel.feature_name == feature_name,
                    FeatureDataModel.cell_id == cell_id
                ).one_or_none()

                if model is None:
                    model = FeatureDataModel(feature_name=feature_name, cell_id=cell_id)
                    session.add(model)
                model.data = data.to_dict()
        except SQLAlchemyError as e:
            raise FeatureStoreError(f"Failed to store {feature_name}/{cell_id}: {e}") from e

    def get_feature_names(self) -> List[str]:
        try:
            with self._database.session() as session:
                rows = session.query(FeatureDataModel.feature_name).distinct().all()
                return sorted(row[0] for row in rows)
        except SQLAlchemyError as e:
            raise FeatureStoreError(f"Failed to enumerate features: {e}") from e

    def get_cell_ids(self, feature_name: str) -> List[int]:
        try:
            with self._database.session() as session:
                rows = session.query(FeatureDataModel.cell_id).filter(
                    FeatureDataModel.feature_name == feature_name
                ).order_by(FeatureDataModel.cell_id).all()
                return [row[0] for row in rows]
        except SQLAlchemyError as e:
            raise FeatureStoreError(f"Failed to enumerate cells of {feature_name}: {e}") from e

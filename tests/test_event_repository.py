"""Tests for the event sinks: SQL repository and in-memory repository."""

import logging
from datetime import timedelta

import pytest

from aisab.behaviour.behaviour_manager import BehaviourManager, Judgment, Transition, Verdict
from aisab.core.statistics import AppStatistics
from aisab.db.repository import EventRepository
from aisab.events.event_sink import InMemoryEventRepository
from aisab.events.event_types import (
    EventCertainty,
    EventKind,
    EventState,
    create_abnormal_event,
    create_tracking_point
)
from aisab.tracking.track import Position

from conftest import MMSI, T0, make_snapshot

SOG = EventKind.SPEED_OVER_GROUND
COG = EventKind.COURSE_OVER_GROUND


def new_event(kind=SOG, at=T0, **track_overrides):
    track = make_snapshot(timestamp=at, **track_overrides)
    return create_abnormal_event(
        kind=kind,
        track=track,
        start_time=at,
        title="Abnormal speed over ground",
        description="NORD STAR at 12 kn",
        payload={"ship_type_category": 2, "ship_size_category": 4},
    )


@pytest.fixture
def repository(database):
    return EventRepository(database)


@pytest.fixture(params=["sql", "memory"])
def sink(request, database):
    if request.param == "sql":
        return EventRepository(database)
    return InMemoryEventRepository()


class TestEventRepository:

    def test_save_and_get(self, repository):
        event = new_event()
        repository.save(event)

        loaded = repository.get_event(event.event_id)
        assert loaded.event_id == event.event_id
        assert loaded.kind is SOG
        assert loaded.state is EventState.ONGOING
        assert loaded.start_time == T0
        assert loaded.end_time is None
        assert loaded.vessel.mmsi == MMSI
        assert loaded.vessel.name == "NORD STAR"
        assert loaded.payload == {"ship_type_category": 2, "ship_size_category": 4}
        assert len(loaded.tracking_points) == 1
        point = loaded.tracking_points[0]
        assert point.certainty is EventCertainty.RAISED
        assert point.latitude == 55.7
        assert point.timestamp == T0

    def test_unknown_event_is_none(self, repository):
        assert repository.get_event("no-such-event") is None

    def test_resave_appends_only_new_points(self, repository):
        event = new_event()
        repository.save(event)
        repository.save(event)

        later = make_snapshot(timestamp=T0 + timedelta(minutes=2), position=Position(55.8, 12.7))
        event.add_tracking_point(create_tracking_point(later, EventCertainty.MAINTAINED))
        repository.save(event)
        repository.save(event)

        loaded = repository.get_event(event.event_id)
        assert [p.certainty for p in loaded.tracking_points] == [
            EventCertainty.RAISED, EventCertainty.MAINTAINED
        ]
        assert loaded.tracking_points[1].latitude == 55.8
        assert repository.count() == 1

    def test_close_is_persisted(self, repository):
        event = new_event()
        repository.save(event)
        event.close(T0 + timedelta(minutes=10))
        repository.save(event)

        loaded = repository.get_event(event.event_id)
        assert loaded.state is EventState.PAST
        assert loaded.end_time == T0 + timedelta(minutes=10)
        assert repository.find_ongoing_event(MMSI, SOG) is None

    def test_more_than_one_ongoing_uses_oldest(self, repository, caplog):
        older = new_event(at=T0)
        newer = new_event(at=T0 + timedelta(minutes=1))
        repository.save(newer)
        repository.save(older)

        with caplog.at_level(logging.WARNING):
            found = repository.find_ongoing_event(MMSI, SOG)

        assert found.event_id == older.event_id
        assert "ongoing" in caplog.text


class TestEventSinkContract:

    def test_find_ongoing_filters_by_vessel_and_kind(self, sink):
        sog = new_event(SOG)
        cog = new_event(COG)
        other = new_event(SOG, mmsi=211000001)
        for event in (sog, cog, other):
            sink.save(event)

        assert sink.find_ongoing_event(MMSI, SOG).event_id == sog.event_id
        assert sink.find_ongoing_event(MMSI, COG).event_id == cog.event_id
        assert sink.find_ongoing_event(MMSI, EventKind.SHIP_TYPE_AND_SIZE) is None

    def test_recent_events_newest_first(self, sink):
        events = [new_event(at=T0 + timedelta(minutes=m), mmsi=211000000 + m) for m in range(5)]
        for event in events:
            sink.save(event)

        recent = sink.find_recent_events(limit=3)
        assert [e.event_id for e in recent] == [e.event_id for e in reversed(events)][:3]

    def test_events_by_from_and_to_overlap(self, sink):
        closed_early = new_event(at=T0, mmsi=211000001)
        closed_early.close(T0 + timedelta(minutes=5))
        spanning = new_event(at=T0 + timedelta(minutes=3), mmsi=211000002)
        spanning.close(T0 + timedelta(hours=2))
        still_ongoing = new_event(at=T0 + timedelta(minutes=20), mmsi=211000003)
        starts_after = new_event(at=T0 + timedelta(hours=3), mmsi=211000004)
        for event in (closed_early, spanning, still_ongoing, starts_after):
            sink.save(event)

        found = sink.find_events_by_from_and_to(T0 + timedelta(minutes=10), T0 + timedelta(hours=1))
        assert [e.event_id for e in found] == [spanning.event_id, still_ongoing.event_id]

    def test_event_kinds(self, sink):
        assert sink.get_event_kinds() == []
        sink.save(new_event(SOG))
        sink.save(new_event(COG))
        sink.save(new_event(SOG, mmsi=211000001))
        assert sink.get_event_kinds() == ["CourseOverGroundEvent", "SpeedOverGroundEvent"]

    def test_returned_events_are_detached(self, sink):
        event = new_event()
        sink.save(event)

        loaded = sink.get_event(event.event_id)
        loaded.close(T0 + timedelta(minutes=1))
        loaded.tracking_points.clear()

        stored = sink.get_event(event.event_id)
        assert stored.is_ongoing
        assert len(stored.tracking_points) == 1

    def test_saved_event_is_copied_in(self):
        sink = InMemoryEventRepository()
        event = new_event()
        sink.save(event)
        event.close(T0)
        assert sink.get_event(event.event_id).is_ongoing


class TestBehaviourManagerOnDatabase:

    def test_lifecycle_against_sql_storage(self, repository):
        manager = BehaviourManager(repository, AppStatistics())

        def judge(verdict, minutes):
            at = T0 + timedelta(minutes=minutes)
            return manager.submit(Judgment(SOG, verdict, make_snapshot(timestamp=at), at, title="t"))

        assert judge(Verdict.ABNORMAL, 0) is Transition.RAISED
        assert judge(Verdict.ABNORMAL, 1) is Transition.MAINTAINED
        assert judge(Verdict.ABNORMAL, 2) is Transition.MAINTAINED
        assert judge(Verdict.STALE, 40) is Transition.LOWERED
        assert judge(Verdict.NORMAL, 41) is Transition.NONE
        assert judge(Verdict.ABNORMAL, 50) is Transition.RAISED

        events = repository.find_recent_events()
        assert len(events) == 2
        newest, first = events
        assert newest.is_ongoing
        assert first.state is EventState.PAST
        assert first.end_time == T0 + timedelta(minutes=40)
        assert [p.certainty for p in first.tracking_points] == [
            EventCertainty.RAISED,
            EventCertainty.MAINTAINED,
            EventCertainty.MAINTAINED,
            EventCertainty.LOWERED,
        ]

    def test_new_manager_resumes_from_storage(self, repository):
        BehaviourManager(repository, AppStatistics()).submit(
            Judgment(SOG, Verdict.ABNORMAL, make_snapshot(), T0)
        )

        restarted = BehaviourManager(repository, AppStatistics())
        at = T0 + timedelta(minutes=1)
        assert restarted.submit(Judgment(SOG, Verdict.ABNORMAL, make_snapshot(timestamp=at), at)) is Transition.MAINTAINED
        assert repository.count() == 1

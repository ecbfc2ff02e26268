"""Tests for the raise/maintain/lower state machine."""

import threading
from datetime import timedelta

import pytest

from aisab.behaviour.behaviour_manager import BehaviourManager, Judgment, Transition, Verdict
from aisab.core.errors import EventPersistenceError
from aisab.core.statistics import AppStatistics
from aisab.events.event_sink import InMemoryEventRepository
from aisab.events.event_types import EventCertainty, EventKind, EventState
from aisab.tracking.track import Position

from conftest import MMSI, T0, make_snapshot

SOG = EventKind.SPEED_OVER_GROUND


def judgment(verdict, at=T0, kind=SOG, **track_overrides):
    track = make_snapshot(timestamp=at, **track_overrides)
    return Judgment(kind=kind, verdict=verdict, track=track, timestamp=at,
                    title="Abnormal speed over ground", description="test")


class FlakySink(InMemoryEventRepository):
    """Fails the next `failures` saves."""

    def __init__(self, failures=0):
        super().__init__()
        self.failures = failures

    def save(self, event):
        if self.failures:
            self.failures -= 1
            raise EventPersistenceError("database is locked")
        super().save(event)


class SlowLookupSink(InMemoryEventRepository):
    """Widens the lookup-then-write window."""

    def find_ongoing_event(self, mmsi, kind):
        event = super().find_ongoing_event(mmsi, kind)
        threading.Event().wait(0.005)
        return event


@pytest.fixture
def statistics():
    return AppStatistics()


@pytest.fixture
def manager(event_sink, statistics):
    return BehaviourManager(event_sink, statistics)


class TestTransitions:

    def test_normal_in_none_writes_nothing(self, manager, event_sink):
        assert manager.submit(judgment(Verdict.NORMAL)) is Transition.NONE
        assert manager.submit(judgment(Verdict.STALE)) is Transition.NONE
        assert event_sink.save_count == 0
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.UNDEFINED

    def test_raise(self, manager, event_sink):
        assert manager.submit(judgment(Verdict.ABNORMAL)) is Transition.RAISED

        event = event_sink.find_ongoing_event(MMSI, SOG)
        assert event.start_time == T0
        assert event.end_time is None
        assert event.vessel.name == "NORD STAR"
        assert [p.certainty for p in event.tracking_points] == [EventCertainty.RAISED]
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.RAISED

    def test_full_lifecycle_creates_distinct_events(self, manager, event_sink):
        t1, t2, t3 = (T0 + timedelta(minutes=m) for m in (5, 10, 15))

        assert manager.submit(judgment(Verdict.ABNORMAL, T0)) is Transition.RAISED
        first_id = event_sink.find_ongoing_event(MMSI, SOG).event_id

        assert manager.submit(judgment(Verdict.ABNORMAL, t1, position=Position(55.8, 12.7))) is Transition.MAINTAINED
        assert len(event_sink) == 1
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.MAINTAINED

        assert manager.submit(judgment(Verdict.NORMAL, t2)) is Transition.LOWERED
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.LOWERED

        first = event_sink.get_event(first_id)
        assert first.state is EventState.PAST
        assert first.start_time == T0
        assert first.end_time == t2
        assert [p.certainty for p in first.tracking_points] == [
            EventCertainty.RAISED, EventCertainty.MAINTAINED, EventCertainty.LOWERED
        ]
        assert first.tracking_points[1].latitude == 55.8

        assert manager.submit(judgment(Verdict.ABNORMAL, t3)) is Transition.RAISED
        second = event_sink.find_ongoing_event(MMSI, SOG)
        assert second.event_id != first_id
        assert second.start_time == t3
        assert len(event_sink) == 2

    def test_stale_lowers_with_detection_time(self, manager, event_sink):
        manager.submit(judgment(Verdict.ABNORMAL, T0))
        detected_at = T0 + timedelta(minutes=40)

        assert manager.submit(judgment(Verdict.STALE, detected_at)) is Transition.LOWERED

        event = event_sink.find_recent_events()[0]
        assert event.state is EventState.PAST
        assert event.end_time == detected_at
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.UNDEFINED

    def test_stale_tracks_are_forgotten(self, manager):
        vessels = [200000000 + n for n in range(50)]
        for mmsi in vessels:
            manager.submit(judgment(Verdict.ABNORMAL, mmsi=mmsi))
        manager.submit(judgment(Verdict.NORMAL, mmsi=vessels[0]))
        assert manager.tracked_count == 50

        stale_at = T0 + timedelta(hours=1)
        for mmsi in vessels:
            manager.submit(judgment(Verdict.STALE, stale_at, mmsi=mmsi))

        assert manager.tracked_count == 0
        assert "tracked=0" in repr(manager)
        assert manager.get_event_certainty(SOG, vessels[0]) is EventCertainty.UNDEFINED

    def test_failed_stale_lower_is_remembered(self, statistics):
        sink = FlakySink()
        manager = BehaviourManager(sink, statistics)
        manager.submit(judgment(Verdict.ABNORMAL))

        sink.failures = 1
        assert manager.submit(judgment(Verdict.STALE, T0 + timedelta(hours=1))) is Transition.FAILED
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.RAISED
        assert manager.tracked_count == 1

    def test_lower_without_position_adds_no_point(self, manager, event_sink):
        manager.submit(judgment(Verdict.ABNORMAL, T0))
        manager.submit(judgment(Verdict.STALE, T0 + timedelta(hours=1), position=None))

        event = event_sink.find_recent_events()[0]
        assert event.state is EventState.PAST
        assert len(event.tracking_points) == 1

    def test_kinds_are_independent(self, manager, event_sink):
        manager.submit(judgment(Verdict.ABNORMAL, kind=EventKind.SPEED_OVER_GROUND))
        assert manager.submit(judgment(Verdict.ABNORMAL, kind=EventKind.COURSE_OVER_GROUND)) is Transition.RAISED
        assert manager.submit(judgment(Verdict.NORMAL, kind=EventKind.COURSE_OVER_GROUND)) is Transition.LOWERED

        assert event_sink.find_ongoing_event(MMSI, EventKind.SPEED_OVER_GROUND) is not None
        assert event_sink.find_ongoing_event(MMSI, EventKind.COURSE_OVER_GROUND) is None

    def test_transition_counters(self, manager, statistics):
        manager.submit(judgment(Verdict.ABNORMAL))
        manager.submit(judgment(Verdict.ABNORMAL))
        manager.submit(judgment(Verdict.NORMAL))

        counters = statistics.snapshot()["BehaviourManager"]
        assert counters["Judgments received"] == 3
        assert counters["Events raised"] == 1
        assert counters["Events maintained"] == 1
        assert counters["Events lowered"] == 1


class TestFailures:

    def test_failed_raise_is_not_remembered(self, statistics):
        sink = FlakySink(failures=1)
        manager = BehaviourManager(sink, statistics)

        assert manager.submit(judgment(Verdict.ABNORMAL)) is Transition.FAILED
        assert len(sink) == 0
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.UNDEFINED
        assert statistics.get("BehaviourManager", "Save failures") == 1

        # Next judgment starts again from NONE
        assert manager.submit(judgment(Verdict.ABNORMAL)) is Transition.RAISED
        assert len(sink) == 1

    def test_failed_lower_keeps_event_ongoing(self, statistics):
        sink = FlakySink()
        manager = BehaviourManager(sink, statistics)
        manager.submit(judgment(Verdict.ABNORMAL))

        sink.failures = 1
        assert manager.submit(judgment(Verdict.NORMAL)) is Transition.FAILED

        stored = sink.find_ongoing_event(MMSI, SOG)
        assert stored is not None
        assert len(stored.tracking_points) == 1
        assert manager.get_event_certainty(SOG, MMSI) is EventCertainty.RAISED

        assert manager.submit(judgment(Verdict.NORMAL)) is Transition.LOWERED

    def test_lookup_failure_is_reported(self, statistics):
        class BrokenSink(InMemoryEventRepository):
            def find_ongoing_event(self, mmsi, kind):
                raise EventPersistenceError("connection refused")

        manager = BehaviourManager(BrokenSink(), statistics)
        assert manager.submit(judgment(Verdict.ABNORMAL)) is Transition.FAILED
        assert statistics.get("BehaviourManager", "Lookup failures") == 1


class TestConcurrency:

    def test_simultaneous_abnormal_judgments_raise_one_event(self, statistics):
        sink = SlowLookupSink()
        manager = BehaviourManager(sink, statistics)
        barrier = threading.Barrier(16)
        results = []
        lock = threading.Lock()

        def submit():
            barrier.wait()
            transition = manager.submit(judgment(Verdict.ABNORMAL))
            with lock:
                results.append(transition)

        threads = [threading.Thread(target=submit) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ongoing = [e for e in sink.find_all() if e.state is EventState.ONGOING]
        assert len(ongoing) == 1
        assert results.count(Transition.RAISED) == 1
        assert results.count(Transition.MAINTAINED) == 15
        assert len(ongoing[0].tracking_points) == 16

    def test_different_vessels_do_not_wait_for_each_other(self, statistics):
        sink = SlowLookupSink()
        manager = BehaviourManager(sink, statistics)

        threads = [
            threading.Thread(target=manager.submit, args=(judgment(Verdict.ABNORMAL, mmsi=200000000 + n),))
            for n in range(10)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(sink) == 10
        assert all(e.state is EventState.ONGOING for e in sink.find_all())

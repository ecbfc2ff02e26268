"""
AisAB - API Routes - Events Endpoint

GET /events - Events active within a time window
GET /events/recent - Most recently raised events
GET /events/kinds - Event kinds present in storage
GET /events/{event_id} - One event with its tracking points
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from aisab.api.state import get_pipeline
from aisab.core.errors import EventPersistenceError
from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline

router = APIRouter(prefix="/events", tags=["events"])


def _unavailable(error: EventPersistenceError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Event storage unavailable: {error}")


@router.get("")
def get_events_between(
    start: datetime = Query(..., alias="from", description="Window start (ISO 8601)"),
    end: datetime = Query(..., alias="to", description="Window end (ISO 8601)"),
    pipeline: AnalyzerPipeline = Depends(get_pipeline)
):
    """
    Get events that were ongoing at some time in [from, to].

    Returns:
        Events ordered by start time
    """
    if end < start:
        raise HTTPException(status_code=422, detail="'to' must not be before 'from'")
    try:
        events = pipeline.event_sink.find_events_by_from_and_to(start, end)
    except EventPersistenceError as e:
        raise _unavailable(e)
    return {
        "count": len(events),
        "events": [e.to_dict() for e in events],
    }


@router.get("/recent")
def get_recent_events(
    limit: int = Query(default=20, ge=1, le=1000, description="Max events to return"),
    pipeline: AnalyzerPipeline = Depends(get_pipeline)
):
    """
    Get recent abnormal events.

    Returns:
        Events, newest first
    """
    try:
        events = pipeline.event_sink.find_recent_events(limit)
    except EventPersistenceError as e:
        raise _unavailable(e)
    return {
        "count": len(events),
        "events": [e.to_dict() for e in events],
    }


@router.get("/kinds")
def get_event_kinds(pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    try:
        return {"kinds": pipeline.event_sink.get_event_kinds()}
    except EventPersistenceError as e:
        raise _unavailable(e)


@router.get("/{event_id}")
def get_event(event_id: str, pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    try:
        event = pipeline.event_sink.get_event(event_id)
    except EventPersistenceError as e:
        raise _unavailable(e)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return event.to_dict()

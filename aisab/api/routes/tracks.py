"""
AisAB - API Routes - Tracks Endpoint

GET /tracks - Live vessel tracks
GET /tracks/{mmsi} - One vessel track
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from aisab.api.state import get_pipeline
from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline

router = APIRouter(prefix="/tracks", tags=["tracks"])


@router.get("")
async def get_tracks(
    limit: int = Query(default=100, ge=1, le=10000, description="Max tracks to return"),
    pipeline: AnalyzerPipeline = Depends(get_pipeline)
):
    """
    Get live tracks ordered by mmsi.

    Returns:
        Total number of tracks and up to limit track snapshots
    """
    tracks = sorted(pipeline.registry.get_tracks(), key=lambda t: t.mmsi)
    return {
        "count": len(tracks),
        "tracks": [t.to_dict() for t in tracks[:limit]],
    }


@router.get("/{mmsi}")
async def get_track(mmsi: int, pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    track = pipeline.registry.get_track(mmsi)
    if track is None:
        raise HTTPException(status_code=404, detail=f"No track for MMSI {mmsi}")
    return track.to_dict()

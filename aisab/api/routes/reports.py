"""
AisAB - API Routes - Report Ingress

POST /reports - Feed one decoded vessel report to the analyzer
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from aisab.api.state import get_pipeline
from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline
from aisab.tracking.track import Position, Report

router = APIRouter(prefix="/reports", tags=["reports"])


class ReportIn(BaseModel):
    """Decoded report request model."""
    mmsi: int
    timestamp: datetime
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    cog: Optional[float] = Field(default=None, description="Course over ground, degrees")
    sog: Optional[float] = Field(default=None, description="Speed over ground, knots")
    heading: Optional[float] = None
    ship_type: Optional[int] = None
    ship_length: Optional[int] = None
    imo: Optional[int] = None
    callsign: Optional[str] = None
    name: Optional[str] = None
    class_b: bool = False
    interpolated: bool = False

    def to_report(self) -> Report:
        position = None
        if self.latitude is not None and self.longitude is not None:
            position = Position(self.latitude, self.longitude)
        return Report(
            mmsi=self.mmsi,
            timestamp=self.timestamp,
            position=position,
            course_over_ground=self.cog,
            speed_over_ground=self.sog,
            true_heading=self.heading,
            ship_type=self.ship_type,
            ship_length=self.ship_length,
            imo=self.imo,
            callsign=self.callsign,
            name=self.name,
            is_class_b=self.class_b,
            position_interpolated=self.interpolated,
        )


@router.post("", status_code=202)
def post_report(report: ReportIn, pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    """
    Apply a report to its vessel's track.

    Reports without a position or with an invalid mmsi are accepted but
    dropped (and counted) by the track registry.

    Returns:
        Whether the report updated a track, and the updated track
    """
    snapshot = pipeline.process_report(report.to_report())
    return {
        "accepted": snapshot is not None,
        "track": snapshot.to_dict() if snapshot else None,
    }

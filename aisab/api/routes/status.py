"""
AisAB - API Routes - Status & System Information

GET /status - Pipeline state, track count and version
GET /status/health - Simple health check
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from aisab import __version__
from aisab.api.state import get_pipeline
from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline

router = APIRouter(prefix="/status", tags=["status"])

APP_NAME = "AisAB"


@router.get("")
async def get_status(pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    """
    Get system status.

    Returns:
        Pipeline status including uptime, track count and enabled analyses
    """
    return {
        "status": "ok",
        "name": APP_NAME,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "pipeline": pipeline.get_status(),
    }


@router.get("/health")
async def health_check(pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    """Simple health check."""
    return {"healthy": True, "running": pipeline.is_running}

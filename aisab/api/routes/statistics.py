"""
AisAB - API Routes - Statistics Endpoint

GET /statistics - Operational counters grouped by component
"""

from fastapi import APIRouter, Depends

from aisab.api.state import get_pipeline
from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline

router = APIRouter(prefix="/statistics", tags=["statistics"])


@router.get("")
async def get_statistics(pipeline: AnalyzerPipeline = Depends(get_pipeline)):
    """
    Get all operational counters.

    Returns:
        Counters by component and label, plus uptime
    """
    statistics = pipeline.statistics
    return {
        "uptime_seconds": round(statistics.uptime_seconds, 1),
        "counters": statistics.snapshot(),
    }

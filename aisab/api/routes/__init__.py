"""
AisAB - API Module - Routes Package
"""

from aisab.api.routes.status import router as status_router
from aisab.api.routes.statistics import router as statistics_router
from aisab.api.routes.tracks import router as tracks_router
from aisab.api.routes.events import router as events_router
from aisab.api.routes.reports import router as reports_router

__all__ = [
    "status_router",
    "statistics_router",
    "tracks_router",
    "events_router",
    "reports_router",
]

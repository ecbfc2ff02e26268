"""
AisAB - AIS Abnormal Behaviour Analyzer
Core Package

Flags abnormal vessel behaviour by comparing each vessel's current
course, speed, type and size with the historical distribution of its
grid cell.

- Tracking: per-vessel state, cell change and staleness notifications
- Statistics: per-cell nested ship counts
- Analysis: probability tests per attribute
- Behaviour: raise/maintain/lower state machine for abnormal events
- Persistence: SQLAlchemy event archive and feature store
"""

__version__ = "1.0.0"

from aisab.config import AisabConfig
from aisab.tracking import Position, Report, TrackSnapshot
from aisab.pipeline import AnalyzerPipeline

__all__ = [
    "__version__",
    "AisabConfig",
    "Position",
    "Report",
    "TrackSnapshot",
    "AnalyzerPipeline",
]

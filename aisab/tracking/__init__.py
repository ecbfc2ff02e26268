"""
AisAB - Tracking Module

Per-vessel track state, grid cell computation and the notifications
published when a vessel changes cell or goes stale.

Components:
- TrackRegistry: Track creation, update and staleness eviction
- Grid: Fixed-size lat/lon discretization
- Track/TrackSnapshot/Report: Shared types
"""

from aisab.tracking.track import (
    Position,
    Report,
    Track,
    TrackSnapshot,
    CellChanged,
    TrackStale
)
from aisab.tracking.grid import Grid
from aisab.tracking.track_registry import TrackRegistry

__all__ = [
    "Position",
    "Report",
    "Track",
    "TrackSnapshot",
    "CellChanged",
    "TrackStale",
    "Grid",
    "TrackRegistry",
]

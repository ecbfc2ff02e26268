"""
AisAB - Statistics Module

Nested per-cell feature counters and the store that serves them.
"""

from aisab.stats.feature_data import SHIP_COUNT, FeatureData
from aisab.stats.feature_store import FeatureStore

__all__ = [
    "SHIP_COUNT",
    "FeatureData",
    "FeatureStore",
]

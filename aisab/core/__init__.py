"""
AisAB - Core Module

Infrastructure shared by every component: counters, keyed locks,
notification dispatch, error types and shutdown handling.
"""

from aisab.core.errors import (
    AisabError,
    EventPersistenceError,
    FeatureStoreError
)
from aisab.core.statistics import AppStatistics
from aisab.core.locks import KeyedLock
from aisab.core.dispatcher import NotificationDispatcher, Subscription
from aisab.core.shutdown import ShutdownHandler

__all__ = [
    "AisabError",
    "EventPersistenceError",
    "FeatureStoreError",
    "AppStatistics",
    "KeyedLock",
    "NotificationDispatcher",
    "Subscription",
    "ShutdownHandler",
]

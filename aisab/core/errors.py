"""
AisAB - Error Types

Exceptions raised across component boundaries.
"""


class AisabError(Exception):
    """Base class for AisAB errors."""


class EventPersistenceError(AisabError):
    """An abnormal event could not be written to or read from the event store."""


class FeatureStoreError(AisabError):
    """Feature data could not be written to the backing store."""

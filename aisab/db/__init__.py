"""
AisAB - Database Module
SQLAlchemy persistence for abnormal events and feature statistics.

Usage:
    from aisab.db import Database, EventRepository

    database = Database("sqlite:///data/aisab.db")
    database.create_tables()
    repo = EventRepository(database)
"""

from aisab.db.database import Base, Database, get_database_url
from aisab.db.models import AbnormalEventModel, FeatureDataModel, TrackingPointModel
from aisab.db.repository import EventRepository, FeatureDataRepository

__all__ = [
    "Base",
    "Database",
    "get_database_url",
    "AbnormalEventModel",
    "TrackingPointModel",
    "FeatureDataModel",
    "EventRepository",
    "FeatureDataRepository",
]

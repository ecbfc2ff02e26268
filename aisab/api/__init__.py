"""
AisAB - API Module

REST API for status, counters, tracks, events and report ingress.

Components:
- create_app: FastAPI application bound to one AnalyzerPipeline
- APIServer: Background server wrapper
"""

from aisab.api.app import APIServer, create_app
from aisab.api.state import get_pipeline

__all__ = [
    "APIServer",
    "create_app",
    "get_pipeline",
]

"""
AisAB - API Module - Shared State

Route handlers reach the analyzer through the pipeline stored on the
application state by create_app().
"""

from fastapi import Request

from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline


def get_pipeline(request: Request) -> AnalyzerPipeline:
    """FastAPI dependency returning the pipeline served by this app."""
    return request.app.state.pipeline

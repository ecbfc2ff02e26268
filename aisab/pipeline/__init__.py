"""
AisAB - Pipeline Package

The assembled analyzer.
"""

from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline

__all__ = [
    "AnalyzerPipeline",
]

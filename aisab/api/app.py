"""
AisAB - AIS Abnormal Behaviour Analyzer
API Module - FastAPI Application

HTTP surface of a running analyzer: status, counters, live tracks,
abnormal events and report ingress.
"""

import logging
import threading
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from aisab import __version__
from aisab.api.routes import (
    status_router,
    statistics_router,
    tracks_router,
    events_router,
    reports_router
)
from aisab.config import APIConfig
from aisab.pipeline.analyzer_pipeline import AnalyzerPipeline

# Configure module logger
logger = logging.getLogger(__name__)


def create_app(pipeline: AnalyzerPipeline, config: Optional[APIConfig] = None) -> FastAPI:
    """
    Create the FastAPI application serving one pipeline.

    Args:
        pipeline: Analyzer the routes read from and feed
        config: API configuration

    Returns:
        Configured FastAPI app
    """
    config = config or pipeline.config.api

    app = FastAPI(
        title="AisAB API",
        description="AIS Abnormal Behaviour Analyzer - REST API",
        version=__version__
    )
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(status_router)
    app.include_router(statistics_router)
    app.include_router(tracks_router)
    app.include_router(events_router)
    app.include_router(reports_router)

    @app.get("/")
    async def root():
        """API root endpoint."""
        return {
            "name": "AisAB API",
            "version": __version__,
            "endpoints": {
                "status": "/status",
                "statistics": "/statistics",
                "tracks": "/tracks",
                "events": "/events",
                "reports": "/reports",
                "docs": "/docs"
            }
        }

    logger.info(f"FastAPI app created (host={config.host}, port={config.port})")
    return app


class APIServer:
    """
    API server wrapper for background execution.

    Runs the FastAPI server in a background thread next to the
    analyzer pipeline.

    Example:
        >>> server = APIServer(pipeline)
        >>> server.start()
        >>> # ... feed reports ...
        >>> server.stop()
    """

    def __init__(self, pipeline: AnalyzerPipeline, config: Optional[APIConfig] = None):
        self._config = config or pipeline.config.api
        self._app = create_app(pipeline, self._config)
        self._thread: Optional[threading.Thread] = None
        self._server: Optional[uvicorn.Server] = None

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the API server in a background thread."""
        if self.is_running:
            logger.warning("API server already running")
            return

        config = uvicorn.Config(
            self._app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False
        )
        self._server = uvicorn.Server(config)

        self._thread = threading.Thread(
            target=self._server.run,
            daemon=True,
            name="aisab_api_server"
        )
        self._thread.start()
        logger.info(f"API server started on http://{self._config.host}:{self._config.port}")

    def stop(self, timeout: float = 5.0) -> None:
        """Ask uvicorn to exit and wait for the server thread."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("API server stopped")

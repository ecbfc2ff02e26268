#!/usr/bin/env python3
"""
AisAB API Server Start Script

Builds the analyzer pipeline from the environment (.env supported),
starts it and serves the HTTP API until SIGINT or SIGTERM.
"""

import os
import logging

if __name__ == "__main__":
    from aisab.api.app import APIServer
    from aisab.config import AisabConfig
    from aisab.core.shutdown import ShutdownHandler
    from aisab.pipeline import AnalyzerPipeline

    config = AisabConfig.from_env()
    debug = os.getenv("AISAB_DEBUG", "false").lower() == "true"

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    pipeline = AnalyzerPipeline(config)
    server = APIServer(pipeline, config.api)

    # Steps run in reverse: the API stops before the pipeline drains
    shutdown_handler = ShutdownHandler()
    pipeline.register_shutdown(shutdown_handler)
    shutdown_handler.register("api server", server.stop)
    shutdown_handler.install_signal_handlers()

    pipeline.start()
    server.start()

    print(f"Starting AisAB API on http://{config.api.host}:{config.api.port}")
    try:
        while not shutdown_handler.wait(timeout=1.0):
            if not server.is_running:
                logging.getLogger(__name__).error("API server exited unexpectedly")
                break
    finally:
        shutdown_handler.shutdown()

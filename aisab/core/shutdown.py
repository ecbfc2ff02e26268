"""
AisAB - Graceful Shutdown Handler

Runs registered cleanup steps once, in reverse registration order, when
SIGINT/SIGTERM arrives or shutdown() is called. The analyzer pipeline
registers the staleness sweeper, the dispatcher and the database here.
"""

import signal
import logging
import threading
from functools import partial
from typing import Callable, List, Optional, Tuple

# Configure module logger
logger = logging.getLogger(__name__)


class ShutdownHandler:
    """
    Ordered cleanup on shutdown.

    Example:
        >>> handler = ShutdownHandler()
        >>> handler.register("sweeper", registry.stop)
        >>> handler.register("database", database.close)
        >>> handler.install_signal_handlers()
    """

    def __init__(self):
        self._steps: List[Tuple[str, Callable[[], None]]] = []
        self._shutdown_event = threading.Event()
        self._lock = threading.Lock()
        self._signals_installed = False

    def register(self, name: str, callback: Callable, *args, **kwargs) -> None:
        """
        Register a cleanup step.

        Args:
            name: Name used in log messages
            callback: Function to call on shutdown
            *args: Arguments to pass to callback
            **kwargs: Keyword arguments to pass to callback
        """
        if args or kwargs:
            callback = partial(callback, *args, **kwargs)
        with self._lock:
            self._steps.append((name, callback))
        logger.debug(f"Registered shutdown step: {name}")

    def install_signal_handlers(self) -> None:
        """Run shutdown() on SIGINT and SIGTERM. Main thread only."""
        if self._signals_installed:
            return
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)
        self._signals_installed = True
        logger.info("Shutdown signal handlers installed")

    def _signal_handler(self, signum: int, frame) -> None:
        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        self.shutdown()

    def shutdown(self) -> None:
        """Execute all cleanup steps once."""
        if self._shutdown_event.is_set():
            return
        self._shutdown_event.set()

        with self._lock:
            steps = list(reversed(self._steps))

        for name, callback in steps:
            try:
                logger.debug(f"Shutting down {name}")
                callback()
            except Exception as e:
                logger.error(f"Shutdown step {name} failed: {e}")

        logger.info("Graceful shutdown complete")

    @property
    def should_shutdown(self) -> bool:
        return self._shutdown_event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until shutdown is requested.

        Args:
            timeout: Maximum time to wait (None = forever)

        Returns:
            True if shutdown was signaled, False on timeout
        """
        return self._shutdown_event.wait(timeout)

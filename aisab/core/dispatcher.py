"""
AisAB - Notification Dispatcher

Typed publish/subscribe between the track registry and the analyses.
A registry maps a notification type to an ordered list of handlers.
Handlers are invoked synchronously, or on a thread pool when the
dispatcher is created with workers.

Features:
- Ordered handler registration per notification type
- Per-handler allow_concurrent flag; handlers without it are serialized
- ThreadPoolExecutor delivery with futures for callers that need to wait
- Handler failures are logged and never stop delivery to other handlers
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

# Configure module logger
logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@dataclass
class Subscription:
    """
    A handler registered for one notification type.

    Attributes:
        handler: Callable receiving the notification
        allow_concurrent: Whether the handler may run on several threads at once
        name: Name used in log messages
    """
    handler: Handler
    allow_concurrent: bool = True
    name: str = ""
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def deliver(self, notification: Any) -> None:
        try:
            if self.allow_concurrent:
                self.handler(notification)
            else:
                with self._lock:
                    self.handler(notification)
        except Exception as e:
            logger.error(
                f"Handler {self.name} failed on {type(notification).__name__}: {e}",
                exc_info=True
            )


class NotificationDispatcher:
    """
    Delivers notifications to the handlers subscribed to their type.

    Example:
        >>> dispatcher = NotificationDispatcher(max_workers=4)
        >>> dispatcher.subscribe(CellChanged, analysis.on_cell_changed)
        >>> dispatcher.publish(CellChanged(snapshot, timestamp))
        >>> dispatcher.shutdown()
    """

    def __init__(self, max_workers: int = 0):
        """
        Initialize the dispatcher.

        Args:
            max_workers: Worker threads for delivery; 0 delivers on the caller's thread
        """
        self._subscriptions: Dict[Type, List[Subscription]] = {}
        self._lock = threading.Lock()
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        if max_workers > 0:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="aisab_dispatch"
            )

        logger.info(f"NotificationDispatcher initialized with {max_workers} workers")

    @property
    def is_async(self) -> bool:
        return self._executor is not None

    def subscribe(
        self,
        notification_type: Type,
        handler: Handler,
        allow_concurrent: bool = True
    ) -> Subscription:
        """
        Register a handler for a notification type.

        Handlers are invoked in registration order.

        Args:
            notification_type: Class of the notifications to receive
            handler: Callable invoked with each notification
            allow_concurrent: False serializes all invocations of this handler

        Returns:
            The created Subscription
        """
        name = getattr(handler, "__qualname__", repr(handler))
        subscription = Subscription(
            handler=handler,
            allow_concurrent=allow_concurrent,
            name=name
        )
        with self._lock:
            self._subscriptions.setdefault(notification_type, []).append(subscription)

        logger.debug(f"Subscribed {name} to {notification_type.__name__}")
        return subscription

    def unsubscribe(self, notification_type: Type, handler: Handler) -> bool:
        """Remove a handler. Returns True if it was registered."""
        with self._lock:
            subscriptions = self._subscriptions.get(notification_type, [])
            for subscription in subscriptions:
                if subscription.handler == handler:
                    subscriptions.remove(subscription)
                    return True
        return False

    def subscriptions_for(self, notification_type: Type) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions.get(notification_type, []))

    def publish(self, notification: Any) -> List[Future]:
        """
        Deliver a notification to every handler of its type.

        Args:
            notification: The notification instance

        Returns:
            Futures of the pool deliveries (empty when synchronous)
        """
        subscriptions = self.subscriptions_for(type(notification))
        if not subscriptions:
            return []

        if self._executor is None:
            for subscription in subscriptions:
                subscription.deliver(notification)
            return []

        futures = []
        for subscription in subscriptions:
            try:
                futures.append(self._executor.submit(subscription.deliver, notification))
            except RuntimeError:
                # Pool already shut down
                logger.warning(
                    f"Dropped {type(notification).__name__} for {subscription.name}: "
                    f"dispatcher is shut down"
                )
        return futures

    def publish_and_wait(self, notification: Any, timeout: Optional[float] = None) -> None:
        """Publish and block until every handler has run."""
        futures = self.publish(notification)
        if futures:
            wait(futures, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop the worker pool.

        Args:
            wait: Whether to let queued deliveries finish
        """
        if self._executor is not None:
            logger.info("Shutting down NotificationDispatcher...")
            self._executor.shutdown(wait=wait)
            logger.info("NotificationDispatcher shutdown complete")

    def __repr__(self) -> str:
        with self._lock:
            handlers = sum(len(s) for s in self._subscriptions.values())
        return (
            f"NotificationDispatcher(workers={self._max_workers}, "
            f"handlers={handlers})"
        )

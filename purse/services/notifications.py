"""
In-process notification hub.

Holds one sink per user. A sink is any callable taking a message dict; the
transport that forwards it to a client lives outside this package.
"""

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

Sink = Callable[[dict[str, Any]], None]


class NotificationHub:
    """Per-user message sinks. Delivery is best effort."""

    def __init__(self):
        self._sinks: dict[str, Sink] = {}
        self._lock = threading.Lock()

    def register(self, user_id: str, sink: Sink):
        """Attach a sink for a user, replacing any previous one."""
        with self._lock:
            self._sinks[user_id] = sink
        logger.debug(f"Registered notification sink for user {user_id}")

    def unregister(self, user_id: str):
        with self._lock:
            self._sinks.pop(user_id, None)
        logger.debug(f"Unregistered notification sink for user {user_id}")

    def is_registered(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._sinks

    def notify(self, user_id: str, message: dict[str, Any]) -> bool:
        """
        Send a message to a user's sink.

        Returns:
            True if delivered, False if the user has no sink or it failed
        """
        with self._lock:
            sink = self._sinks.get(user_id)

        if sink is None:
            logger.debug(f"No notification sink for user {user_id}")
            return False

        try:
            sink(message)
            return True
        except Exception as e:
            logger.warning(f"Failed to notify user {user_id}: {e}", exc_info=True)
            return False

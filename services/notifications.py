"""In-memory notification sink (toast messages for the UI).

Notifications are logged and kept in a bounded deque until the client
drains them.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from core.logger import get_logger

logger = get_logger("services.notifications")


@dataclass
class Notification:
    message: str
    level: str = "info"  # info, success, warning, error
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "message": self.message,
            "level": self.level,
            "created_at": self.created_at.isoformat(),
        }


class NotificationCenter:
    """Bounded buffer of pending notifications; the oldest are dropped first."""

    def __init__(self, max_size: int = 50):
        self._pending = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def notify(self, message: str, level: str = "info") -> None:
        logger.info("Notification [%s]: %s", level, message)
        with self._lock:
            self._pending.append(Notification(message=message, level=level))

    def pending(self) -> List[Notification]:
        with self._lock:
            return list(self._pending)

    def drain(self) -> List[Notification]:
        """Return all pending notifications and clear the buffer."""
        with self._lock:
            items = list(self._pending)
            self._pending.clear()
        return items

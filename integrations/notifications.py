"""Toast-style notification sink used by the presentation layer."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

SEVERITY_LEVELS: Dict[str, int] = {
    "success": logging.INFO,
    "info": logging.INFO,
    "error": logging.ERROR,
}
DEFAULT_DURATION_SECONDS = 4.0


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    severity: str
    expires_at: float


class NotificationCenter:
    """Fire-and-forget messages that expire after a fixed duration."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._next_id = 0
        self._notifications: List[Notification] = []

    def show(
        self,
        message: str,
        severity: str = "info",
        duration: float = DEFAULT_DURATION_SECONDS,
    ) -> Notification:
        if severity not in SEVERITY_LEVELS:
            raise ValueError(f"Unknown severity {severity!r}")
        with self._lock:
            notification = Notification(
                id=self._next_id,
                message=message,
                severity=severity,
                expires_at=self._clock() + duration,
            )
            self._next_id += 1
            self._notifications.append(notification)
        logger.log(SEVERITY_LEVELS[severity], "[%s] %s", severity, message)
        return notification

    def hide(self, notification_id: int) -> None:
        with self._lock:
            self._notifications = [n for n in self._notifications if n.id != notification_id]

    def active(self) -> List[Notification]:
        now = self._clock()
        with self._lock:
            self._notifications = [n for n in self._notifications if n.expires_at > now]
            return list(self._notifications)

"""
DavPanel - Notifications
==========================
User-visible messages raised by console actions.

Every save, load or delete reports its outcome here, success or failure.
Notifications disappear on their own after a few seconds; nothing needs to
be dismissed for the console to keep working.
"""

import time
from dataclasses import dataclass
from typing import Callable


# Seconds a notification stays visible
DISMISS_AFTER = 5.0


@dataclass
class Notification:
    """One message shown to the user."""
    message: str
    level: str
    created: float


class Notifier:
    """
    Queue of auto-dismissing notifications.

    Attributes:
        lifetime: Seconds before a notification expires.
        history:  Every notification ever shown, newest last.
    """

    def __init__(self, lifetime: float = DISMISS_AFTER, clock: Callable[[], float] = time.monotonic):
        self.lifetime = lifetime
        self._clock = clock
        self.history: list[Notification] = []

    def show(self, message: str, level: str = "success") -> Notification:
        """
        Display a message.

        Args:
            message: Text to show.
            level:   "success", "error" or "info".
        """
        notification = Notification(message, level, self._clock())
        self.history.append(notification)
        return notification

    def active(self) -> list[Notification]:
        """Notifications that have not expired yet."""
        now = self._clock()
        return [n for n in self.history if now - n.created < self.lifetime]

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None

    def errors(self) -> list[str]:
        return [n.message for n in self.history if n.level == "error"]

"""
Notification sinks for user-facing toasts.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    level: str  # 'error' or 'success'
    title: str
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level, "title": self.title, "message": self.message}


class NotificationSink:
    def error(self, title: str, message: str) -> None:
        self.notify(Notification("error", title, message))

    def success(self, title: str, message: str) -> None:
        self.notify(Notification("success", title, message))

    def notify(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    def notify(self, notification):
        if notification.level == "error":
            logger.error(f"{notification.title}: {notification.message}")
        else:
            logger.info(f"{notification.title}: {notification.message}")


class RecordingNotificationSink(NotificationSink):
    """Keeps every notification in memory."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, notification):
        self.notifications.append(notification)

    @property
    def errors(self) -> List[Notification]:
        return [n for n in self.notifications if n.level == "error"]

    @property
    def successes(self) -> List[Notification]:
        return [n for n in self.notifications if n.level == "success"]


class QueueNotificationSink(NotificationSink):
    """Buffers notifications for a websocket writer."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()

    def notify(self, notification):
        self.queue.put_nowait(notification)

    async def get(self) -> Optional[Notification]:
        return await self.queue.get()

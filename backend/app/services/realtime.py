"""
In-process change feed for chat messages.

Stands in for the database's insert-notification stream: every committed
message is published to the subscribers of its conversation. A subscription
is a handle around an asyncio.Queue that its owner drains on its own turn.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

EVENT_INSERT = "INSERT"


@dataclass
class ChangeEvent:
    event: str
    table: str
    conversation_id: int
    record: Any


class Subscription:
    """Cancellable handle returned by ChangeFeed.subscribe()."""

    def __init__(self, feed: "ChangeFeed", conversation_id: int, event: str):
        self.feed = feed
        self.conversation_id = conversation_id
        self.event = event
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, change: ChangeEvent) -> None:
        if not self.closed:
            self.queue.put_nowait(change)

    def drain(self) -> List[ChangeEvent]:
        """Return every queued event without waiting."""
        events = []
        while True:
            try:
                change = self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if change is not None:
                events.append(change)
        return events

    async def get(self) -> Optional[ChangeEvent]:
        """Wait for the next event; returns None once the subscription is closed."""
        if self.closed and self.queue.empty():
            return None
        return await self.queue.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.feed.unsubscribe(self)
        # Wake a pending get()
        self.queue.put_nowait(None)


class ChangeFeed:
    def __init__(self):
        self._subscribers: Dict[int, List[Subscription]] = {}

    def subscribe(self, conversation_id: int, event: str = EVENT_INSERT) -> Subscription:
        subscription = Subscription(self, conversation_id, event)
        self._subscribers.setdefault(conversation_id, []).append(subscription)
        logger.debug(f"Subscribed to conversation {conversation_id} ({event})")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.conversation_id)
        if subscribers and subscription in subscribers:
            subscribers.remove(subscription)
            if not subscribers:
                del self._subscribers[subscription.conversation_id]
        logger.debug(f"Unsubscribed from conversation {subscription.conversation_id}")

    def subscriber_count(self, conversation_id: int) -> int:
        return len(self._subscribers.get(conversation_id, []))

    def publish(self, change: ChangeEvent) -> None:
        for subscription in list(self._subscribers.get(change.conversation_id, [])):
            if subscription.event == change.event:
                subscription.push(change)

    def close(self) -> None:
        for subscriptions in list(self._subscribers.values()):
            for subscription in list(subscriptions):
                subscription.close()

"""
Typing indicator coordinator.

The flag for a (conversation, user) pair is set on the first keystroke of a
burst and cleared once, after a quiet period with no further keystrokes.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.config import settings
from app.models.chat_history import TypingIndicator
from app.services.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class TypingCoordinator:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        scheduler: Scheduler,
        timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.scheduler = scheduler
        self.timeout = settings.TYPING_TIMEOUT_SECONDS if timeout is None else timeout
        self._typing: Dict[Tuple[int, str], bool] = {}
        self._timers: Dict[Tuple[int, str], ScheduledTask] = {}

    def is_typing(self, conversation_id: int, user_id: str) -> bool:
        return self._typing.get((conversation_id, user_id), False)

    def keystroke(self, conversation_id: int, user_id: str) -> None:
        key = (conversation_id, user_id)
        if not self._typing.get(key):
            self._typing[key] = True
            self._upsert(conversation_id, user_id, True)

        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._timers[key] = self.scheduler.call_later(
            self.timeout, lambda: self._expire(conversation_id, user_id)
        )

    def clear(self, conversation_id: int, user_id: str) -> None:
        """Stop typing right away, e.g. when the message is sent."""
        key = (conversation_id, user_id)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        if self._typing.pop(key, False):
            self._upsert(conversation_id, user_id, False)

    def typing_users(self, db: Session, conversation_id: int) -> List[str]:
        rows = (
            db.query(TypingIndicator.user_id)
            .filter(
                TypingIndicator.conversation_id == conversation_id,
                TypingIndicator.is_typing.is_(True),
            )
            .order_by(TypingIndicator.user_id)
            .all()
        )
        return [row[0] for row in rows]

    def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._typing.clear()

    def _expire(self, conversation_id: int, user_id: str) -> None:
        key = (conversation_id, user_id)
        self._timers.pop(key, None)
        if self._typing.pop(key, False):
            self._upsert(conversation_id, user_id, False)

    def _upsert(self, conversation_id: int, user_id: str, is_typing: bool) -> None:
        db = self.session_factory()
        try:
            indicator = (
                db.query(TypingIndicator)
                .filter(
                    TypingIndicator.conversation_id == conversation_id,
                    TypingIndicator.user_id == user_id,
                )
                .first()
            )
            if indicator is None:
                db.add(
                    TypingIndicator(
                        conversation_id=conversation_id,
                        user_id=user_id,
                        is_typing=is_typing,
                    )
                )
            else:
                indicator.is_typing = is_typing
                indicator.updated_at = datetime.utcnow()
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Failed to update typing indicator for conversation {conversation_id}: {e}")
        finally:
            db.close()

"""
Append-only message log with realtime publication.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import MessageValidationError
from app.models.chat_history import (
    Message,
    MessageFeedback,
    MESSAGE_TYPE_FILE,
    MESSAGE_TYPE_TEXT,
)
from app.schemas import FileDescriptor, FileMessage, TextMessage, to_message
from app.services.conversation_service import ConversationService, conversation_service
from app.services.realtime import ChangeEvent, ChangeFeed, EVENT_INSERT

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(
        self,
        feed: Optional[ChangeFeed] = None,
        conversations: Optional[ConversationService] = None,
    ):
        self.feed = feed
        self.conversations = conversations or conversation_service

    def load_messages(
        self, db: Session, conversation_id: int
    ) -> List[Union[TextMessage, FileMessage]]:
        """All messages of a conversation, oldest first; ties keep insertion order."""
        rows = (
            db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )
        return [to_message(row) for row in rows]

    def append_text_message(
        self, db: Session, conversation_id: int, author_id: str, text: str
    ) -> TextMessage:
        content = (text or "").strip()
        if not content:
            raise MessageValidationError("MESSAGE_EMPTY")

        row = Message(
            conversation_id=conversation_id,
            user_id=author_id,
            message_type=MESSAGE_TYPE_TEXT,
            content=content,
        )
        return self._persist(db, row)

    def append_file_message(
        self, db: Session, conversation_id: int, author_id: str, file: FileDescriptor
    ) -> FileMessage:
        if file is None or not all([file.url, file.name, file.type]) or file.size is None:
            raise MessageValidationError("FILE_DESCRIPTOR_INCOMPLETE")

        row = Message(
            conversation_id=conversation_id,
            user_id=author_id,
            message_type=MESSAGE_TYPE_FILE,
            content=None,
            file_url=file.url,
            file_name=file.name,
            file_size=file.size,
            file_type=file.type,
        )
        return self._persist(db, row)

    def clear_conversation(self, db: Session, conversation_id: int, user_id: str) -> int:
        """
        Delete the user's messages and the automated replies of a conversation.

        Automated replies are authored by the auto-reply sentinel, so a filter on
        the user id alone would leave them behind without their questions.
        """
        self.conversations.get_owned(db, conversation_id, user_id)

        authors = or_(Message.user_id == user_id, Message.user_id == settings.AUTO_REPLY_AUTHOR_ID)
        scope = select(Message.id).where(Message.conversation_id == conversation_id, authors)
        db.query(MessageFeedback).filter(MessageFeedback.message_id.in_(scope)).delete(synchronize_session=False)
        deleted = (
            db.query(Message)
            .filter(Message.conversation_id == conversation_id, authors)
            .delete(synchronize_session=False)
        )
        db.commit()
        logger.info(f"Cleared {deleted} messages from conversation {conversation_id}")
        return deleted

    def _persist(self, db: Session, row: Message):
        self.conversations.touch(db, row.conversation_id)
        db.add(row)
        db.commit()
        db.refresh(row)

        message = to_message(row)
        logger.debug(
            f"Stored {row.message_type} message {row.id} in conversation {row.conversation_id}"
        )
        if self.feed is not None:
            self.feed.publish(
                ChangeEvent(
                    event=EVENT_INSERT,
                    table=Message.__tablename__,
                    conversation_id=row.conversation_id,
                    record=message,
                )
            )
        return message

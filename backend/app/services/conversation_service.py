"""
Conversation management: creation, listing, renaming and deletion.

Every query that touches a conversation is scoped by the acting user's id;
a conversation owned by somebody else behaves exactly like a missing one.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import ConversationNotFoundError, MessageValidationError
from app.models.chat_history import (
    Conversation,
    Message,
    MessageFeedback,
    TypingIndicator,
    MESSAGE_TYPE_TEXT,
)

logger = logging.getLogger(__name__)


class ConversationService:
    def get_owned(self, db: Session, conversation_id: int, user_id: str) -> Conversation:
        """Return the conversation if `user_id` owns it, else raise ConversationNotFoundError."""
        conversation = (
            db.query(Conversation)
            .filter(Conversation.id == conversation_id, Conversation.user_id == user_id)
            .first()
        )
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def get_latest(self, db: Session, user_id: str) -> Optional[Conversation]:
        return (
            db.query(Conversation)
            .filter(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
            .first()
        )

    def get_or_create_latest(self, db: Session, user_id: str) -> Conversation:
        """Most recently updated conversation of the user, created on first use."""
        conversation = self.get_latest(db, user_id)
        if conversation is not None:
            return conversation
        return self.create_conversation(db, user_id, settings.DEFAULT_CONVERSATION_TITLE)

    def create_conversation(
        self, db: Session, user_id: str, title: Optional[str] = None
    ) -> Conversation:
        if not title or not title.strip():
            count = db.query(Conversation).filter(Conversation.user_id == user_id).count()
            title = f"Chat {count + 1}"

        conversation = Conversation(user_id=user_id, title=title.strip())
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        logger.info(f"Created conversation {conversation.id} for user {user_id}")
        return conversation

    def list_conversations(self, db: Session, user_id: str) -> List[dict]:
        """
        List the user's conversations, most recently updated first.

        Each entry carries the earliest non-automated text message as a
        preview, which callers show instead of the stored title.
        """
        conversations = (
            db.query(Conversation)
            .filter(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
            .all()
        )

        result = []
        for conv in conversations:
            first_message = self._first_user_message(db, conv.id)
            preview = self._preview(first_message)
            result.append(
                {
                    "id": conv.id,
                    "user_id": conv.user_id,
                    "title": conv.title,
                    "created_at": conv.created_at,
                    "updated_at": conv.updated_at,
                    "first_message": preview,
                    "display_title": preview or conv.title or settings.DEFAULT_CONVERSATION_TITLE,
                }
            )
        return result

    def rename_conversation(
        self, db: Session, conversation_id: int, user_id: str, title: str
    ) -> Conversation:
        title = (title or "").strip()
        if not title:
            raise MessageValidationError("CONVERSATION_TITLE_EMPTY")

        conversation = self.get_owned(db, conversation_id, user_id)
        conversation.title = title
        db.commit()
        db.refresh(conversation)
        return conversation

    def delete_conversation(self, db: Session, conversation_id: int, user_id: str) -> None:
        """Delete a conversation together with its messages, feedback and typing rows."""
        conversation = self.get_owned(db, conversation_id, user_id)

        message_ids = select(Message.id).where(Message.conversation_id == conversation.id)
        db.query(MessageFeedback).filter(
            MessageFeedback.message_id.in_(message_ids)
        ).delete(synchronize_session=False)
        db.query(Message).filter(Message.conversation_id == conversation.id).delete(
            synchronize_session=False
        )
        db.query(TypingIndicator).filter(
            TypingIndicator.conversation_id == conversation.id
        ).delete(synchronize_session=False)
        db.delete(conversation)
        db.commit()
        logger.info(f"Deleted conversation {conversation_id} for user {user_id}")

    def touch(self, db: Session, conversation_id: int) -> int:
        """
        Bump updated_at; the caller commits.

        Raises ConversationNotFoundError when the conversation no longer exists,
        e.g. a delayed reply whose conversation was deleted meanwhile.
        """
        updated = (
            db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .update({Conversation.updated_at: datetime.utcnow()}, synchronize_session=False)
        )
        if not updated:
            raise ConversationNotFoundError(conversation_id)
        return updated

    def _first_user_message(self, db: Session, conversation_id: int) -> Optional[str]:
        message = (
            db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.message_type == MESSAGE_TYPE_TEXT,
                Message.user_id != settings.AUTO_REPLY_AUTHOR_ID,
                ~Message.content.startswith(settings.AUTO_REPLY_TAG, autoescape=True),
            )
            .order_by(Message.created_at.asc(), Message.id.asc())
            .first()
        )
        return message.content if message else None

    def _preview(self, text: Optional[str]) -> Optional[str]:
        if not text:
            return None
        limit = settings.CONVERSATION_PREVIEW_LENGTH
        if len(text) > limit:
            return f"{text[:limit]}..."
        return text


conversation_service = ConversationService()

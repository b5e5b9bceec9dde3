import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import MessageNotFoundError, MessageValidationError
from app.models.chat_history import Conversation, Message, MessageFeedback

logger = logging.getLogger(__name__)

FEEDBACK_TYPES = ("positive", "negative")


class FeedbackService:
    """Helpfulness ratings of chat messages, one per (message, user)."""

    def submit(
        self,
        db: Session,
        message_id: int,
        user_id: str,
        feedback_type: str,
        comment: Optional[str] = None,
    ) -> MessageFeedback:
        if feedback_type not in FEEDBACK_TYPES:
            raise MessageValidationError("INVALID_FEEDBACK_TYPE")

        self._get_visible_message(db, message_id, user_id)

        feedback = (
            db.query(MessageFeedback)
            .filter(MessageFeedback.message_id == message_id, MessageFeedback.user_id == user_id)
            .first()
        )
        if feedback is None:
            feedback = MessageFeedback(
                message_id=message_id,
                user_id=user_id,
                feedback_type=feedback_type,
                feedback_comment=comment,
            )
            db.add(feedback)
        else:
            feedback.feedback_type = feedback_type
            feedback.feedback_comment = comment
            feedback.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(feedback)
        logger.info(f"Stored {feedback_type} feedback for message {message_id}")
        return feedback

    def get_feedback(self, db: Session, message_id: int, user_id: str) -> Optional[MessageFeedback]:
        self._get_visible_message(db, message_id, user_id)
        return (
            db.query(MessageFeedback)
            .filter(MessageFeedback.message_id == message_id, MessageFeedback.user_id == user_id)
            .first()
        )

    def _get_visible_message(self, db: Session, message_id: int, user_id: str) -> Message:
        # Messages of other users' conversations look missing
        message = (
            db.query(Message)
            .join(Conversation, Conversation.id == Message.conversation_id)
            .filter(Message.id == message_id, Conversation.user_id == user_id)
            .first()
        )
        if message is None:
            raise MessageNotFoundError(message_id)
        return message


feedback_service = FeedbackService()

"""
Chat database models.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    ForeignKey,
    Boolean,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base

MESSAGE_TYPE_TEXT = "text"
MESSAGE_TYPE_FILE = "file"


class Conversation(Base):
    """Conversation model."""

    __tablename__ = "chat_conversations"
    # Deleted ids are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), index=True, nullable=False)
    title = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan"
    )


class Message(Base):
    """Message model. Rows are append-only."""

    __tablename__ = "chat_messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(
        Integer, ForeignKey("chat_conversations.id"), index=True, nullable=False
    )
    user_id = Column(String(64), nullable=False)  # author, or the auto-reply sentinel
    message_type = Column(String(16), nullable=False, default=MESSAGE_TYPE_TEXT)
    content = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # File descriptor, set together for 'file' messages
    file_url = Column(String, nullable=True)
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(100), nullable=True)

    conversation = relationship("Conversation", back_populates="messages")


class TypingIndicator(Base):
    """Ephemeral per (conversation, user) typing flag, overwritten in place."""

    __tablename__ = "typing_indicators"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="ux_typing_conversation_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(
        Integer, ForeignKey("chat_conversations.id"), index=True, nullable=False
    )
    user_id = Column(String(64), nullable=False)
    is_typing = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MessageFeedback(Base):
    """Helpfulness rating of a message; one per (message, user)."""

    __tablename__ = "chat_feedback"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="ux_feedback_message_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("chat_messages.id"), index=True, nullable=False)
    user_id = Column(String(64), nullable=False)
    feedback_type = Column(String(16), nullable=False)  # 'positive' or 'negative'
    feedback_comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

"""
Database models for the Scooter Support Chat.

All SQLAlchemy models are imported here so metadata sees every table.
"""

from app.models.chat_history import Conversation, Message, TypingIndicator, MessageFeedback
from app.models.predefined_question import PredefinedQuestion
from app.models.scooter_model import ScooterModel, ModelQuestion

__all__ = [
    "Conversation",
    "Message",
    "TypingIndicator",
    "MessageFeedback",
    "PredefinedQuestion",
    "ScooterModel",
    "ModelQuestion",
]

"""
Predefined question database model (admin-managed auto-reply table).
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean

from app.database import Base


class PredefinedQuestion(Base):
    """Canonical question text mapped to its canned answer."""

    __tablename__ = "admin_questions"

    id = Column(String(64), primary_key=True)
    category = Column(String(100), nullable=False, index=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

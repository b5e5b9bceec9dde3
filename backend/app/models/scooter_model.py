"""
Scooter catalogue and the quick questions specific to each model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Float, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base

QUESTION_TYPES = ["specification", "troubleshooting", "compatibility", "general"]


class ScooterModel(Base):
    """A scooter model the user can pick to get model-specific quick questions."""

    __tablename__ = "scooter_models"

    id = Column(String(64), primary_key=True)
    model_name = Column(String(100), nullable=False, index=True)
    model_code = Column(String(50), nullable=False, unique=True)
    max_speed = Column(Integer, nullable=True)  # km/h
    range_km = Column(Integer, nullable=True)
    battery_capacity = Column(String(50), nullable=True)
    motor_power = Column(String(50), nullable=True)
    price = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    questions = relationship(
        "ModelQuestion", back_populates="model", cascade="all, delete-orphan"
    )


class ModelQuestion(Base):
    """Canned question and answer scoped to one scooter model."""

    __tablename__ = "model_specific_questions"

    id = Column(String(64), primary_key=True)
    model_id = Column(String(64), ForeignKey("scooter_models.id"), index=True, nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    question_type = Column(String(32), default="general", nullable=False)
    category = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    model = relationship("ScooterModel", back_populates="questions")

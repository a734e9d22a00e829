"""User profile model: points, level, streak and completion counters."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.db.session import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(64), primary_key=True)
    display_name = Column(String(255), nullable=True)

    points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    streak = Column(Integer, nullable=False, default=0)  # consecutive activity days
    completed_lessons = Column(Integer, nullable=False, default=0)
    completed_simulations = Column(Integer, nullable=False, default=0)
    completed_quizzes = Column(Integer, nullable=False, default=0)
    last_activity_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

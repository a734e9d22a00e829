"""Completion record: one per rewarded activity. Its key makes reward application idempotent."""
from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.db.session import Base


class ActivityCompletion(Base):
    __tablename__ = "activity_completions"
    __table_args__ = (
        UniqueConstraint("user_id", "activity_kind", "activity_key", name="uq_completion_activity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    activity_kind = Column(String(32), nullable=False)  # lesson | simulation | quiz
    activity_key = Column(String(128), nullable=False)  # e.g. "local-budget:2" (id:attempt)
    activity_id = Column(String(64), nullable=False)
    title = Column(String(255), nullable=False)
    score_percentage = Column(Integer, nullable=True)
    points_earned = Column(Integer, nullable=False, default=0)
    # RewardOutcome as applied, returned unchanged on a repeated event
    outcome_json = Column(Text, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

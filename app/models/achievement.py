"""UserAchievement model: at most one row per (user, achievement)."""
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from app.db.session import Base


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    achievement_id = Column(String(64), nullable=False)
    earned_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

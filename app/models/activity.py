"""Activity log model: append-only record of awards, read by leaderboards."""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.db.session import Base


class ActivityLog(Base):
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    activity_type = Column(String(32), nullable=False)  # lesson | simulation | quiz | achievement
    title = Column(String(255), nullable=False)
    details = Column(Text, nullable=True)
    points_earned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

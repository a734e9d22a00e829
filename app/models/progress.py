"""Progress model: one row per (user, simulation). Holds the resumable walk state."""
from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.db.session import Base


class SimulationProgressRow(Base):
    __tablename__ = "simulation_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "simulation_id", name="uq_progress_user_simulation"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    simulation_id = Column(String(64), nullable=False, index=True)

    attempt = Column(Integer, nullable=False, default=1)
    current_step = Column(Integer, nullable=False, default=1)
    total_score = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="in_progress")  # in_progress | completed
    # choices: JSON array of {step, choice_id, points_delta, timestamp}
    choices_json = Column(Text, nullable=False, default="[]")
    # final SimulationResult, written once at completion
    result_json = Column(Text, nullable=True)

    # optimistic concurrency token, bumped on every write
    version = Column(Integer, nullable=False, default=1)

    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

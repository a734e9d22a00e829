"""Pydantic schemas for results, rewards, profiles and stats."""
from datetime import datetime

from pydantic import BaseModel


class AchievementSchema(BaseModel):
    id: str
    name: str
    description: str
    type: str
    points: int


class RewardOutcomeSchema(BaseModel):
    """What one completion event did to the user's profile."""

    activity_kind: str
    activity_key: str
    points_awarded: int = 0
    achievement_points: int = 0
    total_points: int = 0
    level: int = 1
    previous_level: int = 1
    streak: int = 0
    new_achievements: list[AchievementSchema] = []
    already_applied: bool = False

    @property
    def leveled_up(self) -> bool:
        return self.level > self.previous_level


class StepResultSchema(BaseModel):
    step: int
    choice_id: str
    choice_text: str
    points_delta: int
    max_points: int
    is_correct: bool
    feedback: str
    consequences: str | None = None


class SimulationResultSchema(BaseModel):
    simulation_id: str
    title: str
    attempt: int
    total_score: int
    max_possible_score: int
    final_score: int  # 0-100
    correct_answers: int
    steps_taken: int
    points_earned: int
    time_spent_minutes: int
    performance_level: str
    badge: str
    step_results: list[StepResultSchema]
    new_achievements: list[AchievementSchema] = []
    rewards_applied: bool = True
    warnings: list[str] = []
    completed_at: datetime | None = None


class EarnedAchievementSchema(AchievementSchema):
    earned_at: datetime


class ProfileOutSchema(BaseModel):
    user_id: str
    display_name: str | None = None
    points: int
    level: int
    streak: int
    completed_lessons: int
    completed_simulations: int
    completed_quizzes: int
    last_activity_at: datetime | None = None
    achievements: list[EarnedAchievementSchema] = []


class CompletionSummarySchema(BaseModel):
    simulation_id: str
    title: str
    score_percentage: int
    performance_level: str
    badge: str
    completed_at: datetime


class SimulationStatsSchema(BaseModel):
    total_completed: int = 0
    average_score: int = 0
    badges: list[str] = []
    recent_completions: list[CompletionSummarySchema] = []

from app.schemas.progress import ChoiceRecordSchema, ProgressStatus, ProgressSummarySchema, SimulationProgressSchema
from app.schemas.scenario import ChoiceSchema, ScenarioStepSchema, SimulationDefinitionSchema, SimulationSummarySchema
from app.schemas.stats import (
    AchievementSchema,
    ProfileOutSchema,
    RewardOutcomeSchema,
    SimulationResultSchema,
    SimulationStatsSchema,
    StepResultSchema,
)

__all__ = [
    "AchievementSchema",
    "ChoiceRecordSchema",
    "ChoiceSchema",
    "ProfileOutSchema",
    "ProgressStatus",
    "ProgressSummarySchema",
    "RewardOutcomeSchema",
    "ScenarioStepSchema",
    "SimulationDefinitionSchema",
    "SimulationProgressSchema",
    "SimulationResultSchema",
    "SimulationStatsSchema",
    "SimulationSummarySchema",
    "StepResultSchema",
]

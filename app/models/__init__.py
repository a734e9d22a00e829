from app.models.user import UserProfile
from app.models.progress import SimulationProgressRow
from app.models.completion import ActivityCompletion
from app.models.achievement import UserAchievement
from app.models.activity import ActivityLog

__all__ = ["UserProfile", "SimulationProgressRow", "ActivityCompletion", "UserAchievement", "ActivityLog"]

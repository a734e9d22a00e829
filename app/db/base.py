"""SQLAlchemy declarative base and model imports for Alembic."""
from app.db.session import Base

# Import all models so Alembic can see them
from app.models.achievement import UserAchievement  # noqa: F401
from app.models.activity import ActivityLog  # noqa: F401
from app.models.completion import ActivityCompletion  # noqa: F401
from app.models.progress import SimulationProgressRow  # noqa: F401
from app.models.user import UserProfile  # noqa: F401

__all__ = ["Base", "UserProfile", "SimulationProgressRow", "ActivityCompletion", "UserAchievement", "ActivityLog"]

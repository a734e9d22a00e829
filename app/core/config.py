"""Application configuration from environment."""
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Civic Simulation Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./civic_sim.db"
    store_timeout_seconds: float = 5.0
    max_write_retries: int = 3

    # Rewards
    points_per_level: int = 100
    lesson_completion_points: int = 10
    streak_reset_on_gap: bool = False

    # Scenario catalog; built-in simulations when unset
    catalog_path: str | None = None

    # Completion notifier (disabled when URL is empty)
    notifier_webhook_url: str = ""
    notifier_timeout_seconds: float = 3.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


# Base path of the project (parent of app/)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

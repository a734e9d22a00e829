"""
Pytest configuration: in-memory database, fixed clock and a small scenario catalog.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.db.base import Base
from app.db.session import make_engine, make_sessionmaker
from app.main import build_service
from app.services.catalog import ScenarioCatalog
from app.services.notifier import CompletionNotifier
from app.services.progress_store import ProgressStore
from app.services.rewards import RewardLedger

# 1 -> 2 -> done; best path A (+10) then B (+20) = 30
LOCAL_BUDGET = {
    "id": "local-budget",
    "title": "Local Budget",
    "category": "local_government",
    "steps": [
        {
            "step": 1,
            "title": "Hearings",
            "description": "Start the budget process",
            "choices": [
                {"id": "A", "text": "Hold hearings", "points_delta": 10, "feedback": "Good", "next_step": 2},
                {"id": "C", "text": "Skip hearings", "points_delta": 2, "feedback": "Weak", "next_step": 2},
            ],
        },
        {
            "step": 2,
            "title": "Vote",
            "description": "Present the budget",
            "choices": [
                {"id": "B", "text": "Publish everything", "points_delta": 20, "feedback": "Great",
                 "is_complete": True},
                {"id": "D", "text": "Closed session", "points_delta": -5, "feedback": "Bad",
                 "is_complete": True},
            ],
        },
    ],
}

# branches skip step 2; step 4 has no choices and ends the walk
BRANCHING = {
    "id": "branching",
    "title": "Branching Petition",
    "steps": [
        {
            "step": 1,
            "description": "Pick a route",
            "choices": [
                {"id": "long", "text": "Go through step 2", "points_delta": 5, "next_step": 2},
                {"id": "short", "text": "Jump to step 3", "points_delta": 1, "next_step": 3},
            ],
        },
        {
            "step": 2,
            "description": "Middle",
            "choices": [{"id": "go", "text": "Continue", "points_delta": 5, "next_step": 3}],
        },
        {
            "step": 3,
            "description": "Last decision",
            "choices": [
                {"id": "finish", "text": "Finish now", "points_delta": 10, "is_complete": True},
                {"id": "wait", "text": "Wait for the outcome", "points_delta": 0, "next_step": 4},
            ],
        },
        {"step": 4, "description": "The outcome", "choices": []},
    ],
}


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier(CompletionNotifier):
    def __init__(self):
        self.sent = []

    async def notify_completion(self, user_name: str, title: str, score: int) -> bool:
        self.sent.append((user_name, title, score))
        return True


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        store_timeout_seconds=5.0,
        max_write_retries=3,
        notifier_webhook_url="",
    )


@pytest.fixture
async def db_engine():
    engine = make_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(db_engine):
    return make_sessionmaker(db_engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def catalog() -> ScenarioCatalog:
    return ScenarioCatalog.from_raw([LOCAL_BUDGET, BRANCHING])


@pytest.fixture
def store(sessionmaker) -> ProgressStore:
    return ProgressStore(sessionmaker, timeout=5.0)


@pytest.fixture
def ledger(sessionmaker, clock) -> RewardLedger:
    return RewardLedger(sessionmaker, clock=clock)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(test_settings, sessionmaker, catalog, notifier, clock):
    return build_service(test_settings, sessionmaker, catalog, notifier=notifier, clock=clock)

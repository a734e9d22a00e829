"""Concurrent reward and choice requests against a file-backed SQLite database."""
import asyncio

import pytest
from sqlalchemy import func, select

from app.core.errors import InvalidChoice, InvalidState
from app.db.base import Base
from app.db.session import make_engine, make_sessionmaker
from app.models.achievement import UserAchievement
from app.models.completion import ActivityCompletion
from app.services.progress_store import ProgressStore
from app.services.rewards import Activity, RewardLedger
from app.services.simulations import SimulationService


@pytest.fixture
async def file_sessionmaker(tmp_path):
    # separate connections per session, unlike the shared in-memory database
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield make_sessionmaker(engine)
    await engine.dispose()


@pytest.fixture
def file_ledger(file_sessionmaker, clock):
    return RewardLedger(file_sessionmaker, max_retries=5, clock=clock)


def lesson(lesson_id):
    return Activity(kind="lesson", activity_id=lesson_id, activity_key=lesson_id, title=lesson_id, points=10)


async def rows(sessionmaker, model, **filters):
    async with sessionmaker() as db:
        query = select(func.count()).select_from(model)
        for column, value in filters.items():
            query = query.where(getattr(model, column) == value)
        return (await db.execute(query)).scalar_one()


class TestConcurrentRewards:
    async def test_identical_events_apply_once(self, file_ledger, file_sessionmaker):
        outcomes = await asyncio.gather(*(file_ledger.apply("u1", lesson("lesson-1")) for _ in range(4)))

        assert sum(not o.already_applied for o in outcomes) == 1
        assert {o.total_points for o in outcomes} == {20}
        assert await rows(file_sessionmaker, ActivityCompletion, user_id="u1") == 1
        assert await rows(file_sessionmaker, UserAchievement, user_id="u1", achievement_id="civic_starter") == 1
        profile = await file_ledger.profile("u1")
        assert profile.points == 20
        assert profile.completed_lessons == 1

    async def test_lesson_and_simulation_at_once(self, file_ledger, file_sessionmaker):
        simulation = Activity(
            kind="simulation",
            activity_id="local-budget",
            activity_key="local-budget:1",
            title="Local Budget",
            points=10,
            score_percentage=100,
        )
        outcomes = await asyncio.gather(file_ledger.apply("u1", lesson("lesson-1")), file_ledger.apply("u1", simulation))

        assert not any(o.already_applied for o in outcomes)
        profile = await file_ledger.profile("u1")
        assert profile.completed_lessons == 1
        assert profile.completed_simulations == 1
        # lesson 10 + civic_starter 10, simulation 10 + first_simulation 15 + flawless_governance 25
        assert profile.points == 70
        assert {a.id for a in profile.achievements} == {"civic_starter", "first_simulation", "flawless_governance"}

    async def test_shared_achievement_is_granted_once(self, file_ledger, file_sessionmaker):
        await asyncio.gather(file_ledger.apply("u1", lesson("lesson-a")), file_ledger.apply("u1", lesson("lesson-b")))

        assert await rows(file_sessionmaker, UserAchievement, user_id="u1") == 1
        profile = await file_ledger.profile("u1")
        assert profile.completed_lessons == 2
        assert profile.points == 30


class TestConcurrentChoices:
    async def test_same_choice_applies_once(self, catalog, file_sessionmaker, file_ledger, clock):
        service = SimulationService(catalog, ProgressStore(file_sessionmaker), file_ledger, clock=clock, max_retries=5)
        await service.start("u1", "local-budget")

        results = await asyncio.gather(
            *(service.make_choice("u1", "local-budget", "A") for _ in range(3)),
            return_exceptions=True,
        )

        applied = [r for r in results if isinstance(r, dict)]
        assert len(applied) == 1
        assert all(isinstance(r, (InvalidChoice, InvalidState)) for r in results if not isinstance(r, dict))
        progress = await service.progress("u1", "local-budget")
        assert progress["progress"].score == 10
        assert len(progress["choices"]) == 1

"""Tests for the reward ledger: idempotency, level ratchet, streaks and achievements."""
import pytest
from sqlalchemy import func, select

from app.core.errors import ConcurrencyConflict
from app.models.achievement import UserAchievement
from app.models.activity import ActivityLog
from app.models.user import UserProfile
from app.services import rewards
from app.services.rewards import Activity, RewardLedger


def lesson(lesson_id="lesson-1", category=None, points=10):
    return Activity(
        kind="lesson",
        activity_id=lesson_id,
        activity_key=lesson_id,
        title=f"Lesson {lesson_id}",
        points=points,
        category=category,
    )


def simulation(attempt=1, score=100):
    return Activity(
        kind="simulation",
        activity_id="local-budget",
        activity_key=f"local-budget:{attempt}",
        title="Local Budget",
        points=round(score / 10),
        score_percentage=score,
        category="local_government",
    )


async def count(sessionmaker, model, user_id="u1"):
    async with sessionmaker() as db:
        result = await db.execute(select(func.count()).select_from(model).where(model.user_id == user_id))
        return result.scalar_one()


class TestApply:
    async def test_first_lesson(self, ledger):
        outcome = await ledger.apply("u1", lesson())
        assert outcome.points_awarded == 10
        assert [a.id for a in outcome.new_achievements] == ["civic_starter"]
        assert outcome.achievement_points == 10
        assert outcome.total_points == 20
        assert outcome.level == 1
        assert outcome.streak == 1
        assert outcome.already_applied is False

    async def test_same_event_is_applied_once(self, ledger, sessionmaker):
        first = await ledger.apply("u1", lesson())
        again = await ledger.apply("u1", lesson())

        assert again.already_applied is True
        assert again.total_points == first.total_points
        profile = await ledger.profile("u1")
        assert profile.points == 20
        assert profile.completed_lessons == 1
        assert await count(sessionmaker, UserAchievement) == 1
        # one completion entry plus one achievement entry
        assert await count(sessionmaker, ActivityLog) == 2

    async def test_category_achievement(self, ledger):
        outcome = await ledger.apply("u1", lesson(category="voting"))
        assert {a.id for a in outcome.new_achievements} == {"civic_starter", "democracy_defender"}
        assert outcome.total_points == 10 + 10 + 75

    async def test_achievement_is_granted_once(self, ledger):
        await ledger.apply("u1", lesson("lesson-1"))
        outcome = await ledger.apply("u1", lesson("lesson-2"))
        assert outcome.new_achievements == []
        assert outcome.total_points == 30

    async def test_simulation_rewards(self, ledger):
        outcome = await ledger.apply("u1", simulation())
        assert outcome.points_awarded == 10
        assert {a.id for a in outcome.new_achievements} == {"first_simulation", "flawless_governance"}
        assert outcome.total_points == 10 + 15 + 25

    async def test_new_attempt_is_a_new_event(self, ledger):
        await ledger.apply("u1", simulation(attempt=1))
        outcome = await ledger.apply("u1", simulation(attempt=2, score=50))
        assert outcome.already_applied is False
        assert outcome.points_awarded == 5
        profile = await ledger.profile("u1")
        assert profile.completed_simulations == 2

    async def test_unknown_kind(self, ledger):
        with pytest.raises(ValueError):
            await ledger.apply("u1", lesson()._replace(kind="podcast"))


class TestLevelAndStreak:
    async def test_level_up(self, ledger):
        outcome = await ledger.apply("u1", lesson(points=85))
        assert outcome.total_points == 95
        assert outcome.level == 1
        outcome = await ledger.apply("u1", lesson("lesson-2", points=10))
        assert outcome.total_points == 105
        assert outcome.level == 2
        assert outcome.leveled_up

    async def test_level_never_decreases(self, ledger, sessionmaker):
        async with sessionmaker() as db:
            db.add(UserProfile(
                user_id="u1", points=0, level=5, streak=0,
                completed_lessons=0, completed_simulations=0, completed_quizzes=0, version=1,
            ))
            await db.commit()

        outcome = await ledger.apply("u1", lesson())
        assert outcome.total_points == 20
        assert outcome.level == 5
        assert outcome.previous_level == 5

    async def test_same_day_keeps_streak(self, ledger, clock):
        await ledger.apply("u1", lesson("lesson-1"))
        clock.advance(hours=5)
        outcome = await ledger.apply("u1", lesson("lesson-2"))
        assert outcome.streak == 1

    async def test_next_day_increments_streak(self, ledger, clock):
        await ledger.apply("u1", lesson("lesson-1"))
        clock.advance(days=1)
        outcome = await ledger.apply("u1", lesson("lesson-2"))
        assert outcome.streak == 2

    async def test_gap_resets_when_configured(self, sessionmaker, clock):
        ledger = RewardLedger(sessionmaker, streak_reset_on_gap=True, clock=clock)
        await ledger.apply("u1", lesson("lesson-1"))
        clock.advance(days=1)
        await ledger.apply("u1", lesson("lesson-2"))
        clock.advance(days=3)
        outcome = await ledger.apply("u1", lesson("lesson-3"))
        assert outcome.streak == 1

    async def test_streak_achievement(self, ledger, clock):
        outcome = None
        for day in range(7):
            outcome = await ledger.apply("u1", lesson(f"lesson-{day}"))
            clock.advance(days=1)
        assert outcome.streak == 7
        assert "civic_streak" in {a.id for a in outcome.new_achievements}


class TestRetries:
    async def test_lost_race_is_retried(self, ledger, monkeypatch):
        real = RewardLedger._apply_once
        calls = []

        async def flaky(self, user_id, activity):
            calls.append(activity.activity_key)
            if len(calls) == 1:
                raise rewards._LostRace()
            return await real(self, user_id, activity)

        monkeypatch.setattr(RewardLedger, "_apply_once", flaky)
        outcome = await ledger.apply("u1", lesson())
        assert len(calls) == 2
        assert outcome.total_points == 20

    async def test_retries_exhausted(self, sessionmaker, clock, monkeypatch):
        async def always_lose(self, user_id, activity):
            raise rewards._LostRace()

        monkeypatch.setattr(RewardLedger, "_apply_once", always_lose)
        ledger = RewardLedger(sessionmaker, max_retries=2, clock=clock)
        with pytest.raises(ConcurrencyConflict):
            await ledger.apply("u1", lesson())


class TestReads:
    async def test_profile_missing(self, ledger):
        assert await ledger.profile("nobody") is None

    async def test_profile_achievements(self, ledger):
        await ledger.apply("u1", lesson(category="constitution"))
        profile = await ledger.profile("u1")
        assert {a.id for a in profile.achievements} == {"civic_starter", "constitution_scholar"}
        assert profile.last_activity_at is not None

    async def test_simulation_stats(self, ledger, clock):
        await ledger.apply("u1", simulation(attempt=1, score=100))
        clock.advance(minutes=10)
        await ledger.apply("u1", simulation(attempt=2, score=60))

        stats = await ledger.simulation_stats("u1")
        assert stats.total_completed == 2
        assert stats.average_score == 80
        assert stats.badges == ["Learning Citizen", "Civic Champion"]
        assert stats.recent_completions[0].score_percentage == 60

    async def test_simulation_stats_empty(self, ledger):
        stats = await ledger.simulation_stats("u1")
        assert stats.total_completed == 0
        assert stats.recent_completions == []

"""Reward ledger: turns a completion event into points, level, streak and achievements.

One call applies one activity inside a single transaction:

1. a completion record already stored for the activity key means the event
   was applied before; its outcome is returned unchanged;
2. points, level (ratcheted) and streak are written with a compare-and-swap
   on the profile version;
3. newly satisfied achievements are inserted under the (user, achievement)
   unique constraint;
4. activity-log entries and the completion record are appended.

A lost race (stale profile version, concurrent achievement or completion
insert) rolls the whole transaction back and the event is re-driven from
step 1, so retries never double-apply.
"""
import logging
from datetime import datetime
from typing import Callable, NamedTuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ConcurrencyConflict
from app.models.achievement import UserAchievement
from app.models.activity import ActivityLog
from app.models.completion import ActivityCompletion
from app.models.user import UserProfile
from app.schemas.stats import (
    CompletionSummarySchema,
    EarnedAchievementSchema,
    ProfileOutSchema,
    RewardOutcomeSchema,
    SimulationStatsSchema,
)
from app.services.persistence import as_utc, guarded, utcnow
from app.services.scoring import (
    achievement_catalog,
    eligible_achievements,
    next_streak,
    performance_band,
    ratchet_level,
)

logger = logging.getLogger(__name__)

# activity kind -> profile counter bumped on completion
COUNTERS = {
    "lesson": "completed_lessons",
    "simulation": "completed_simulations",
    "quiz": "completed_quizzes",
}


class Activity(NamedTuple):
    kind: str  # lesson | simulation | quiz
    activity_id: str
    activity_key: str  # unique per rewarded event, e.g. "<simulation id>:<attempt>"
    title: str
    points: int
    score_percentage: int | None = None
    category: str | None = None
    display_name: str | None = None


class _LostRace(Exception):
    pass


class RewardLedger:
    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        points_per_level: int = 100,
        streak_reset_on_gap: bool = False,
        timeout: float = 5.0,
        max_retries: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._sessionmaker = sessionmaker
        self._points_per_level = points_per_level
        self._streak_reset_on_gap = streak_reset_on_gap
        self._timeout = timeout
        self._max_retries = max_retries
        self._clock = clock

    async def apply(self, user_id: str, activity: Activity) -> RewardOutcomeSchema:
        """Apply ``activity`` for ``user_id`` exactly once."""
        if activity.kind not in COUNTERS:
            raise ValueError(f"Unknown activity kind {activity.kind!r}")
        for attempt in range(self._max_retries + 1):
            try:
                return await guarded(self._apply_once(user_id, activity), self._timeout, "reward application")
            except _LostRace:
                logger.warning(
                    "Reward application for %s %s lost a race (try %d)", user_id, activity.activity_key, attempt + 1
                )
        raise ConcurrencyConflict(f"Could not apply rewards for {activity.activity_key} after retries")

    async def _apply_once(self, user_id: str, activity: Activity) -> RewardOutcomeSchema:
        async with self._sessionmaker() as db:
            prior = await db.execute(
                select(ActivityCompletion.outcome_json).where(
                    ActivityCompletion.user_id == user_id,
                    ActivityCompletion.activity_kind == activity.kind,
                    ActivityCompletion.activity_key == activity.activity_key,
                )
            )
            prior_json = prior.scalar_one_or_none()
            if prior_json is not None:
                logger.info("Rewards for %s %s already applied", user_id, activity.activity_key)
                outcome = RewardOutcomeSchema.model_validate_json(prior_json)
                return outcome.model_copy(update={"already_applied": True})

            profile = await db.get(UserProfile, user_id)
            if profile is None:
                profile = UserProfile(
                    user_id=user_id,
                    display_name=activity.display_name,
                    points=0,
                    level=1,
                    streak=0,
                    completed_lessons=0,
                    completed_simulations=0,
                    completed_quizzes=0,
                    version=1,
                )
                db.add(profile)
                try:
                    await db.flush()
                except IntegrityError as exc:
                    await db.rollback()
                    raise _LostRace() from exc

            now = self._clock()
            read_version = profile.version
            previous_level = profile.level or 1
            last_activity = as_utc(profile.last_activity_at)

            counter = COUNTERS[activity.kind]
            counters = {
                "completed_lessons": profile.completed_lessons or 0,
                "completed_simulations": profile.completed_simulations or 0,
                "completed_quizzes": profile.completed_quizzes or 0,
            }
            counters[counter] += 1
            counters["streak"] = next_streak(
                profile.streak or 0,
                last_activity.date() if last_activity else None,
                now.date(),
                reset_on_gap=self._streak_reset_on_gap,
            )

            earned = await db.execute(
                select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
            )
            earned_ids = set(earned.scalars().all())
            new_achievements = [
                a for a in eligible_achievements(
                    activity.kind,
                    counters,
                    {"score_percentage": activity.score_percentage, "category": activity.category},
                )
                if a.id not in earned_ids
            ]
            achievement_points = sum(a.points for a in new_achievements)

            points = (profile.points or 0) + activity.points + achievement_points
            level = ratchet_level(previous_level, points, self._points_per_level)

            changed = await db.execute(
                update(UserProfile)
                .where(UserProfile.user_id == user_id, UserProfile.version == read_version)
                .values(
                    points=points,
                    level=level,
                    streak=counters["streak"],
                    last_activity_at=now,
                    version=read_version + 1,
                    **{counter: counters[counter]},
                )
                .execution_options(synchronize_session=False)
            )
            if changed.rowcount != 1:
                await db.rollback()
                raise _LostRace()

            outcome = RewardOutcomeSchema(
                activity_kind=activity.kind,
                activity_key=activity.activity_key,
                points_awarded=activity.points,
                achievement_points=achievement_points,
                total_points=points,
                level=level,
                previous_level=previous_level,
                streak=counters["streak"],
                new_achievements=new_achievements,
            )

            db.add(
                ActivityLog(
                    user_id=user_id,
                    activity_type=activity.kind,
                    title=f"Completed {activity.kind}: {activity.title}",
                    details=f"Earned {activity.points} points",
                    points_earned=activity.points,
                    created_at=now,
                )
            )
            for achievement in new_achievements:
                db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id, earned_at=now))
                db.add(
                    ActivityLog(
                        user_id=user_id,
                        activity_type="achievement",
                        title=f"Achievement unlocked: {achievement.name}",
                        details=achievement.description,
                        points_earned=achievement.points,
                        created_at=now,
                    )
                )
            db.add(
                ActivityCompletion(
                    user_id=user_id,
                    activity_kind=activity.kind,
                    activity_key=activity.activity_key,
                    activity_id=activity.activity_id,
                    title=activity.title,
                    score_percentage=activity.score_percentage,
                    points_earned=activity.points,
                    outcome_json=outcome.model_dump_json(),
                    completed_at=now,
                )
            )
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise _LostRace() from exc

        logger.info(
            "Applied %s %s for %s: +%d points, level %d, streak %d, %d new achievements",
            activity.kind, activity.activity_key, user_id,
            activity.points + achievement_points, level, counters["streak"], len(new_achievements),
        )
        return outcome

    async def profile(self, user_id: str) -> ProfileOutSchema | None:
        async def _profile():
            async with self._sessionmaker() as db:
                profile = await db.get(UserProfile, user_id)
                if profile is None:
                    return None
                rows = await db.execute(
                    select(UserAchievement)
                    .where(UserAchievement.user_id == user_id)
                    .order_by(UserAchievement.earned_at, UserAchievement.id)
                )
                catalog = {a.id: a for a in achievement_catalog()}
                achievements = [
                    EarnedAchievementSchema(**catalog[r.achievement_id].model_dump(), earned_at=as_utc(r.earned_at))
                    for r in rows.scalars().all()
                    if r.achievement_id in catalog
                ]
                return ProfileOutSchema(
                    user_id=profile.user_id,
                    display_name=profile.display_name,
                    points=profile.points,
                    level=profile.level,
                    streak=profile.streak,
                    completed_lessons=profile.completed_lessons,
                    completed_simulations=profile.completed_simulations,
                    completed_quizzes=profile.completed_quizzes,
                    last_activity_at=as_utc(profile.last_activity_at),
                    achievements=achievements,
                )

        return await guarded(_profile(), self._timeout, "profile")

    async def simulation_stats(self, user_id: str) -> SimulationStatsSchema:
        """Completed simulations of a user, newest first."""
        async def _stats():
            async with self._sessionmaker() as db:
                rows = await db.execute(
                    select(ActivityCompletion)
                    .where(ActivityCompletion.user_id == user_id, ActivityCompletion.activity_kind == "simulation")
                    .order_by(ActivityCompletion.completed_at.desc(), ActivityCompletion.id.desc())
                )
                return rows.scalars().all()

        completions = await guarded(_stats(), self._timeout, "stats")
        if not completions:
            return SimulationStatsSchema()

        summaries = []
        for c in completions:
            performance_level, badge = performance_band(c.score_percentage or 0)
            summaries.append(
                CompletionSummarySchema(
                    simulation_id=c.activity_id,
                    title=c.title,
                    score_percentage=c.score_percentage or 0,
                    performance_level=performance_level,
                    badge=badge,
                    completed_at=as_utc(c.completed_at),
                )
            )
        badges = []
        for s in summaries:
            if s.badge not in badges:
                badges.append(s.badge)
        return SimulationStatsSchema(
            total_completed=len(summaries),
            average_score=round(sum(s.score_percentage for s in summaries) / len(summaries)),
            badges=badges,
            recent_completions=summaries[:5],
        )

"""Simulation service: per-request orchestration of catalog, state machine, store and ledger.

Each call loads progress fresh, applies one transition, and writes it back
with a version check. A lost write is retried against the reloaded state; a
choice submitted for a step the progress has already left is rejected.
"""
import logging
from datetime import datetime
from typing import Any, Callable

from app.core.errors import ConcurrencyConflict, InvalidState, NotFound, PersistenceError
from app.schemas.progress import SimulationProgressSchema
from app.schemas.stats import (
    ProfileOutSchema,
    RewardOutcomeSchema,
    SimulationResultSchema,
    SimulationStatsSchema,
)
from app.services import engine
from app.services.catalog import ScenarioCatalog
from app.services.notifier import CompletionNotifier, LoggingNotifier
from app.services.persistence import utcnow
from app.services.progress_store import ProgressStore
from app.services.reporter import build_result
from app.services.rewards import Activity, RewardLedger
from app.services.scoring import score_points

logger = logging.getLogger(__name__)

REWARDS_WARNING = "Rewards may not have been fully applied; they will be re-applied on the next results request."


class SimulationService:
    def __init__(
        self,
        catalog: ScenarioCatalog,
        store: ProgressStore,
        ledger: RewardLedger,
        notifier: CompletionNotifier | None = None,
        *,
        max_retries: int = 3,
        lesson_points: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.catalog = catalog
        self.store = store
        self.ledger = ledger
        self.notifier = notifier or LoggingNotifier()
        self.max_retries = max_retries
        self.lesson_points = lesson_points
        self.clock = clock

    # ---------- read actions ----------

    def list_simulations(self):
        return self.catalog.list_simulations()

    def scenario(self, simulation_id: str, step: int):
        return self.catalog.get_step(simulation_id, step)

    async def progress(self, user_id: str, simulation_id: str) -> dict[str, Any] | None:
        self.catalog.get_simulation(simulation_id)
        progress = await self.store.load(user_id, simulation_id)
        if progress is None:
            return None
        return {
            "progress": engine.progress_summary(self.catalog, progress),
            "choices": list(progress.choices),
            "attempt": progress.attempt,
        }

    async def stats(self, user_id: str) -> SimulationStatsSchema:
        return await self.ledger.simulation_stats(user_id)

    async def profile(self, user_id: str) -> ProfileOutSchema:
        profile = await self.ledger.profile(user_id)
        if profile is None:
            raise NotFound(f"No profile for user {user_id!r}")
        return profile

    # ---------- transitions ----------

    async def start(self, user_id: str, simulation_id: str) -> dict[str, Any]:
        """Begin a new attempt at step 1, replacing any earlier progress."""
        definition = self.catalog.get_simulation(simulation_id)
        for attempt in range(self.max_retries + 1):
            previous = await self.store.load(user_id, simulation_id)
            fresh = engine.start(self.catalog, simulation_id, user_id, self.clock(), previous=previous)
            try:
                saved = await self.store.save(fresh)
            except ConcurrencyConflict:
                logger.info("Start of %s for %s raced, retrying (%d)", simulation_id, user_id, attempt + 1)
                continue
            logger.info("User %s started %s (attempt %d)", user_id, simulation_id, saved.attempt)
            return {
                "scenario": engine.current_scenario(self.catalog, saved),
                "progress": engine.progress_summary(self.catalog, saved),
                "simulation": {"id": definition.id, "title": definition.title, "total_steps": definition.total_steps},
            }
        raise ConcurrencyConflict(f"Could not start {simulation_id} for {user_id}")

    async def resume(self, user_id: str, simulation_id: str) -> dict[str, Any]:
        definition = self.catalog.get_simulation(simulation_id)
        progress = await self.store.load(user_id, simulation_id)
        if progress is None:
            raise InvalidState(f"No progress to resume for {simulation_id}")
        return {
            "scenario": engine.current_scenario(self.catalog, progress),
            "progress": engine.progress_summary(self.catalog, progress),
            "simulation": {"id": definition.id, "title": definition.title, "total_steps": definition.total_steps},
            "previous_choices": list(progress.choices),
        }

    async def make_choice(
        self,
        user_id: str,
        simulation_id: str,
        choice_id: str,
        step: int | None = None,
        display_name: str | None = None,
    ) -> dict[str, Any]:
        """Apply a choice to the stored progress; completes and rewards on the last step."""
        self.catalog.get_simulation(simulation_id)
        for attempt in range(self.max_retries + 1):
            progress = await self.store.load(user_id, simulation_id)
            if progress is None:
                raise InvalidState(f"Simulation {simulation_id} has not been started")
            if step is not None and not progress.is_completed and step != progress.current_step:
                raise InvalidState(f"Choice submitted for step {step}, progress is at step {progress.current_step}")

            outcome = engine.apply_choice(self.catalog, progress, choice_id, self.clock())
            try:
                saved = await self.store.save(outcome.progress)
            except ConcurrencyConflict:
                logger.info("Choice on %s for %s raced, retrying (%d)", simulation_id, user_id, attempt + 1)
                continue

            if not outcome.is_complete:
                return {
                    "choice": outcome.choice,
                    "next_scenario": outcome.next_scenario,
                    "progress": engine.progress_summary(self.catalog, saved),
                    "is_complete": False,
                }

            result = await self._finalize(saved, display_name)
            return {"choice": outcome.choice, "is_complete": True, "results": result}
        raise ConcurrencyConflict(f"Could not apply choice on {simulation_id} for {user_id}")

    async def results(self, user_id: str, simulation_id: str) -> SimulationResultSchema:
        """Stored result of a completed walk; re-drives rewards left unapplied."""
        self.catalog.get_simulation(simulation_id)
        progress = await self.store.load(user_id, simulation_id)
        if progress is None:
            raise NotFound(f"No progress for {simulation_id}")
        if not progress.is_completed:
            raise InvalidState("Simulation is not completed yet")

        stored = await self.store.load_result(user_id, simulation_id)
        if stored is not None and stored.rewards_applied:
            return stored
        return await self._finalize(progress, None, notify=False)

    async def complete_lesson(
        self,
        user_id: str,
        lesson_id: str,
        title: str,
        category: str | None = None,
        display_name: str | None = None,
    ) -> RewardOutcomeSchema:
        activity = Activity(
            kind="lesson",
            activity_id=lesson_id,
            activity_key=lesson_id,
            title=title,
            points=self.lesson_points,
            category=category,
            display_name=display_name,
        )
        return await self.ledger.apply(user_id, activity)

    async def complete_quiz(
        self,
        user_id: str,
        quiz_id: str,
        title: str,
        score_percentage: int,
        category: str | None = None,
        display_name: str | None = None,
    ) -> RewardOutcomeSchema:
        """Record a scored quiz; a quiz counts once per user."""
        activity = Activity(
            kind="quiz",
            activity_id=quiz_id,
            activity_key=quiz_id,
            title=title,
            points=score_points(score_percentage),
            score_percentage=score_percentage,
            category=category,
            display_name=display_name,
        )
        return await self.ledger.apply(user_id, activity)

    # ---------- completion ----------

    async def _finalize(
        self,
        progress: SimulationProgressSchema,
        display_name: str | None,
        notify: bool = True,
    ) -> SimulationResultSchema:
        definition = self.catalog.get_simulation(progress.simulation_id)
        breakdown = engine.results(self.catalog, progress)

        outcome = None
        warnings = []
        try:
            outcome = await self.ledger.apply(
                progress.user_id,
                Activity(
                    kind="simulation",
                    activity_id=definition.id,
                    activity_key=progress.activity_key,
                    title=definition.title,
                    points=score_points(breakdown.final_score),
                    score_percentage=breakdown.final_score,
                    category=definition.category,
                    display_name=display_name,
                ),
            )
        except (PersistenceError, ConcurrencyConflict) as exc:
            logger.warning("Rewards for %s %s not applied: %s", progress.user_id, progress.activity_key, exc)
            warnings.append(REWARDS_WARNING)

        result = build_result(progress, definition, outcome, warnings)
        try:
            await self.store.save(progress, result=result)
        except (PersistenceError, ConcurrencyConflict) as exc:
            # the next results request rebuilds it from the completed progress
            logger.warning("Could not store result for %s %s: %s", progress.user_id, progress.activity_key, exc)

        logger.info(
            "User %s completed %s with %d%% (rewards applied: %s)",
            progress.user_id, definition.id, result.final_score, result.rewards_applied,
        )
        if notify:
            await self._notify(display_name or progress.user_id, definition.title, result.final_score)
        return result

    async def _notify(self, user_name: str, title: str, score: int) -> None:
        try:
            await self.notifier.notify_completion(user_name, title, score)
        except Exception:
            logger.warning("Completion notifier failed for %s", user_name, exc_info=True)

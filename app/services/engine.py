"""Simulation state machine.

Every function here is pure: it takes the catalog, an explicit progress value
and an action, and returns a new progress value. Nothing is kept between
calls, so a request can rebuild the machine from whatever the progress store
returns.
"""
from datetime import datetime
from typing import NamedTuple

from app.core.errors import InvalidChoice, InvalidState
from app.schemas.progress import (
    ChoiceRecordSchema,
    ProgressStatus,
    ProgressSummarySchema,
    SimulationProgressSchema,
)
from app.schemas.scenario import ChoiceSchema, ScenarioStepSchema, SimulationDefinitionSchema
from app.services.catalog import ScenarioCatalog
from app.services.scoring import normalize_score


class ChoiceOutcome(NamedTuple):
    progress: SimulationProgressSchema
    choice: ChoiceSchema
    is_complete: bool
    next_scenario: ScenarioStepSchema | None


class ScoreBreakdown(NamedTuple):
    total_score: int
    max_possible_score: int
    final_score: int
    correct_answers: int


def start(
    catalog: ScenarioCatalog,
    simulation_id: str,
    user_id: str,
    now: datetime,
    previous: SimulationProgressSchema | None = None,
) -> SimulationProgressSchema:
    """Fresh progress at step 1. Restarting over ``previous`` keeps its store version."""
    catalog.get_simulation(simulation_id)
    return SimulationProgressSchema(
        user_id=user_id,
        simulation_id=simulation_id,
        attempt=previous.attempt + 1 if previous else 1,
        current_step=1,
        total_score=0,
        choices=(),
        status=ProgressStatus.IN_PROGRESS,
        started_at=now,
        version=previous.version if previous else None,
    )


def current_scenario(catalog: ScenarioCatalog, progress: SimulationProgressSchema) -> ScenarioStepSchema:
    if progress.is_completed:
        raise InvalidState("Simulation already completed")
    return catalog.get_step(progress.simulation_id, progress.current_step)


def apply_choice(
    catalog: ScenarioCatalog,
    progress: SimulationProgressSchema,
    choice_id: str,
    now: datetime,
) -> ChoiceOutcome:
    """Apply one choice at the current step and advance or complete."""
    scenario = current_scenario(catalog, progress)
    choice = scenario.get_choice(choice_id)
    if choice is None:
        raise InvalidChoice(f"Choice {choice_id!r} is not available at step {scenario.step}")

    record = ChoiceRecordSchema(
        step=scenario.step,
        choice_id=choice.id,
        points_delta=choice.points_delta,
        timestamp=now,
    )
    update = {
        "choices": progress.choices + (record,),
        "total_score": progress.total_score + choice.points_delta,
    }

    next_scenario = None
    if choice.is_complete:
        is_complete = True
    else:
        next_scenario = catalog.get_step(progress.simulation_id, choice.next_step)
        update["current_step"] = choice.next_step
        # a step without choices cannot be left, so arriving there ends the walk
        is_complete = next_scenario.is_terminal
        if is_complete:
            next_scenario = None

    if is_complete:
        update["status"] = ProgressStatus.COMPLETED
        update["completed_at"] = now

    return ChoiceOutcome(
        progress=progress.model_copy(update=update),
        choice=choice,
        is_complete=is_complete,
        next_scenario=next_scenario,
    )


def score_breakdown(definition: SimulationDefinitionSchema, progress: SimulationProgressSchema) -> ScoreBreakdown:
    """Normalized score and count of best-available choices."""
    correct = 0
    for record in progress.choices:
        step = definition.get_step(record.step)
        if step is not None and record.points_delta == step.max_points:
            correct += 1

    return ScoreBreakdown(
        total_score=progress.total_score,
        max_possible_score=definition.max_possible_score,
        final_score=normalize_score(progress.total_score, definition.max_possible_score),
        correct_answers=correct,
    )


def results(catalog: ScenarioCatalog, progress: SimulationProgressSchema) -> ScoreBreakdown:
    """Score breakdown of a completed walk."""
    if not progress.is_completed:
        raise InvalidState("Simulation is not completed yet")
    return score_breakdown(catalog.get_simulation(progress.simulation_id), progress)


def progress_summary(catalog: ScenarioCatalog, progress: SimulationProgressSchema) -> ProgressSummarySchema:
    total_steps = catalog.get_simulation(progress.simulation_id).total_steps
    if progress.is_completed:
        percentage = 100
    else:
        percentage = round((progress.current_step - 1) / (total_steps or 1) * 100)
    return ProgressSummarySchema(
        current_step=progress.current_step,
        total_steps=total_steps,
        percentage=percentage,
        score=progress.total_score,
        status=progress.status,
    )

"""Completion reporter: assembles the SimulationResult of a finished walk. No side effects."""
from app.schemas.progress import SimulationProgressSchema
from app.schemas.scenario import SimulationDefinitionSchema
from app.schemas.stats import RewardOutcomeSchema, SimulationResultSchema, StepResultSchema
from app.services.engine import score_breakdown
from app.services.scoring import performance_band, score_points


def build_result(
    progress: SimulationProgressSchema,
    definition: SimulationDefinitionSchema,
    reward_outcome: RewardOutcomeSchema | None,
    warnings: list[str] | None = None,
) -> SimulationResultSchema:
    """Final result of ``progress``.

    ``reward_outcome`` is ``None`` when the ledger could not apply rewards;
    the result is still complete and says so through ``rewards_applied``
    and ``warnings``.
    """
    breakdown = score_breakdown(definition, progress)
    performance_level, badge = performance_band(breakdown.final_score)

    step_results = []
    for record in progress.choices:
        step = definition.get_step(record.step)
        choice = step.get_choice(record.choice_id) if step else None
        max_points = step.max_points if step else record.points_delta
        step_results.append(
            StepResultSchema(
                step=record.step,
                choice_id=record.choice_id,
                choice_text=choice.text if choice else "",
                points_delta=record.points_delta,
                max_points=max_points,
                is_correct=record.points_delta == max_points,
                feedback=choice.feedback if choice else "",
                consequences=choice.consequences if choice else None,
            )
        )

    time_spent = 0
    if progress.completed_at is not None:
        time_spent = max(0, round((progress.completed_at - progress.started_at).total_seconds() / 60))

    return SimulationResultSchema(
        simulation_id=definition.id,
        title=definition.title,
        attempt=progress.attempt,
        total_score=breakdown.total_score,
        max_possible_score=breakdown.max_possible_score,
        final_score=breakdown.final_score,
        correct_answers=breakdown.correct_answers,
        steps_taken=len(progress.choices),
        points_earned=reward_outcome.points_awarded if reward_outcome else score_points(breakdown.final_score),
        time_spent_minutes=time_spent,
        performance_level=performance_level,
        badge=badge,
        step_results=step_results,
        new_achievements=list(reward_outcome.new_achievements) if reward_outcome else [],
        rewards_applied=reward_outcome is not None,
        warnings=list(warnings or []),
        completed_at=progress.completed_at,
    )

"""API routes: JSON for simulations, lesson and quiz completion, and profiles."""
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request

from app.schemas.scenario import ChoiceSubmitSchema, LessonCompleteSchema, QuizCompleteSchema, UserRequestSchema
from app.services.simulations import SimulationService

router = APIRouter(prefix="/api", tags=["api"])


def get_service(request: Request) -> SimulationService:
    return request.app.state.simulations


Service = Annotated[SimulationService, Depends(get_service)]
UserId = Annotated[str, Query(min_length=1, max_length=64)]
ActivityId = Annotated[str, Path(min_length=1, max_length=64)]


def _ok(data) -> dict:
    return {"success": True, "data": data}


@router.get("/simulations")
async def list_simulations(service: Service):
    """List available simulations."""
    return _ok(service.list_simulations())


@router.get("/simulations/stats")
async def simulation_stats(service: Service, user_id: UserId):
    """Completed simulations, average score and badges of a user."""
    return _ok(await service.stats(user_id))


@router.get("/simulations/{simulation_id}/steps/{step}")
async def get_scenario(simulation_id: str, step: int, service: Service):
    """Get one step of a simulation."""
    return _ok(service.scenario(simulation_id, step))


@router.post("/simulations/{simulation_id}/start")
async def start_simulation(simulation_id: str, body: UserRequestSchema, service: Service):
    """Start (or restart) a simulation at step 1."""
    return _ok(await service.start(body.user_id, simulation_id))


@router.post("/simulations/{simulation_id}/choices")
async def make_choice(simulation_id: str, body: ChoiceSubmitSchema, service: Service):
    """Submit a choice for the current step."""
    return _ok(
        await service.make_choice(
            body.user_id,
            simulation_id,
            body.choice_id,
            step=body.step,
            display_name=body.display_name,
        )
    )


@router.post("/simulations/{simulation_id}/resume")
async def resume_simulation(simulation_id: str, body: UserRequestSchema, service: Service):
    """Current step and previous choices of saved progress."""
    return _ok(await service.resume(body.user_id, simulation_id))


@router.get("/simulations/{simulation_id}/progress")
async def get_progress(simulation_id: str, service: Service, user_id: UserId):
    """Saved progress, or null when the user never started."""
    return _ok(await service.progress(user_id, simulation_id))


@router.get("/simulations/{simulation_id}/results")
async def get_results(simulation_id: str, service: Service, user_id: UserId):
    """Final result of a completed simulation."""
    return _ok(await service.results(user_id, simulation_id))


@router.post("/lessons/{lesson_id}/complete")
async def complete_lesson(lesson_id: ActivityId, body: LessonCompleteSchema, service: Service):
    """Record a lesson completion and apply its rewards."""
    outcome = await service.complete_lesson(
        body.user_id,
        lesson_id,
        body.title,
        category=body.category,
        display_name=body.display_name,
    )
    return _ok(outcome)


@router.post("/quizzes/{quiz_id}/complete")
async def complete_quiz(quiz_id: ActivityId, body: QuizCompleteSchema, service: Service):
    """Record a scored quiz and apply its rewards."""
    outcome = await service.complete_quiz(
        body.user_id,
        quiz_id,
        body.title,
        body.score_percentage,
        category=body.category,
        display_name=body.display_name,
    )
    return _ok(outcome)


@router.get("/profiles/{user_id}")
async def get_profile(user_id: str, service: Service):
    """Points, level, streak and earned achievements."""
    return _ok(await service.profile(user_id))

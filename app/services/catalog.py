"""Scenario catalog: validated, immutable simulation definitions shared by reference."""
import json
import logging
from collections import deque
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from app.core.errors import MalformedDefinition, NotFound
from app.schemas.scenario import (
    ChoiceSchema,
    ScenarioStepSchema,
    SimulationDefinitionSchema,
    SimulationSummarySchema,
)

logger = logging.getLogger(__name__)

# accepted spellings of raw definition keys -> schema field
_CHOICE_KEYS = {
    "points": "points_delta",
    "pointsDelta": "points_delta",
    "nextStep": "next_step",
    "isComplete": "is_complete",
}
_SIMULATION_KEYS = {
    "scenarios": "steps",
    "difficulty": "difficulty_level",
    "estimatedMinutes": "estimated_minutes",
    "estimated_time": "estimated_minutes",
}


def _rename(raw: Mapping[str, Any], keys: dict[str, str]) -> dict[str, Any]:
    return {keys.get(k, k): v for k, v in raw.items()}


def _parse_choice(raw: Mapping[str, Any], step: int, last_step: int, sim_id: str) -> ChoiceSchema:
    if not isinstance(raw, Mapping):
        raise MalformedDefinition(f"{sim_id}: choice at step {step} is not an object")
    data = _rename(raw, _CHOICE_KEYS)
    has_next = data.get("next_step") is not None
    complete = bool(data.get("is_complete"))
    if has_next and complete:
        raise MalformedDefinition(
            f"{sim_id}: choice {data.get('id')!r} at step {step} has both next_step and is_complete"
        )
    if not has_next and not complete:
        # linear definition: fall through to the following step
        if step < last_step:
            data["next_step"] = step + 1
        else:
            data["is_complete"] = True
    return ChoiceSchema(**data)


def _parse_step(raw: Mapping[str, Any], last_step: int, sim_id: str) -> ScenarioStepSchema:
    data = dict(raw)
    step = data["step"]
    choices = data.get("choices") or ()
    if not isinstance(choices, (list, tuple)):
        raise MalformedDefinition(f"{sim_id}: choices of step {step} must be a list")
    data["choices"] = tuple(_parse_choice(c, step, last_step, sim_id) for c in choices)
    return ScenarioStepSchema(**data)


def _max_path_scores(steps: tuple[ScenarioStepSchema, ...]) -> dict[int, int]:
    """Best-case score from each step to the end. Steps only point forward."""
    best: dict[int, int] = {}
    for step in reversed(steps):
        if step.is_terminal:
            best[step.step] = 0
            continue
        best[step.step] = max(
            c.points_delta + (0 if c.is_complete else best[c.next_step]) for c in step.choices
        )
    return best


def _validate(sim_id: str, steps: list[ScenarioStepSchema]) -> None:
    if not steps:
        raise MalformedDefinition(f"{sim_id}: simulation has no steps")

    numbers = [s.step for s in steps]
    if numbers != list(range(1, len(steps) + 1)):
        raise MalformedDefinition(f"{sim_id}: step numbers must be contiguous from 1, got {numbers}")
    if steps[0].is_terminal:
        raise MalformedDefinition(f"{sim_id}: step 1 has no choices")

    for step in steps:
        ids = [c.id for c in step.choices]
        if len(ids) != len(set(ids)):
            raise MalformedDefinition(f"{sim_id}: duplicate choice ids at step {step.step}")
        for choice in step.choices:
            if choice.is_complete:
                continue
            if choice.next_step > len(steps):
                raise MalformedDefinition(
                    f"{sim_id}: choice {choice.id!r} at step {step.step} points to missing step {choice.next_step}"
                )
            if choice.next_step <= step.step:
                raise MalformedDefinition(
                    f"{sim_id}: choice {choice.id!r} at step {step.step} loops back to step {choice.next_step}"
                )

    reachable = {1}
    queue = deque([1])
    while queue:
        current = steps[queue.popleft() - 1]
        for choice in current.choices:
            if not choice.is_complete and choice.next_step not in reachable:
                reachable.add(choice.next_step)
                queue.append(choice.next_step)
    orphans = sorted(set(numbers) - reachable)
    if orphans:
        raise MalformedDefinition(f"{sim_id}: steps {orphans} are unreachable from step 1")


def parse_definition(raw: Mapping[str, Any]) -> SimulationDefinitionSchema:
    """Validate one raw simulation definition; raise MalformedDefinition if it is broken."""
    if not isinstance(raw, Mapping):
        raise MalformedDefinition("simulation definition is not an object")
    data = _rename(raw, _SIMULATION_KEYS)
    sim_id = str(data.get("id") or "")
    if not sim_id:
        raise MalformedDefinition("simulation without an id")
    data["id"] = sim_id
    data.pop("total_steps", None)
    data.pop("totalSteps", None)

    raw_steps = data.get("steps") or ()
    if not isinstance(raw_steps, (list, tuple)):
        raise MalformedDefinition(f"{sim_id}: steps must be a list")
    for raw_step in raw_steps:
        if not isinstance(raw_step, Mapping):
            raise MalformedDefinition(f"{sim_id}: step is not an object")
        step = raw_step.get("step")
        # bool is an int subclass
        if not isinstance(step, int) or isinstance(step, bool):
            raise MalformedDefinition(f"{sim_id}: step without an integer step number: {step!r}")
    raw_steps = sorted(raw_steps, key=lambda s: s["step"])
    try:
        steps = [_parse_step(s, len(raw_steps), sim_id) for s in raw_steps]
        _validate(sim_id, steps)
        data["steps"] = tuple(steps)
        data["max_possible_score"] = _max_path_scores(data["steps"])[1]
        return SimulationDefinitionSchema(**data)
    except ValidationError as exc:
        raise MalformedDefinition(f"{sim_id}: {exc}") from exc


class ScenarioCatalog:
    """Read-only set of simulation definitions. Never mutated after construction."""

    def __init__(self, definitions: Iterable[SimulationDefinitionSchema]):
        by_id: dict[str, SimulationDefinitionSchema] = {}
        for definition in definitions:
            if definition.id in by_id:
                raise MalformedDefinition(f"duplicate simulation id {definition.id!r}")
            by_id[definition.id] = definition
        self._simulations = MappingProxyType(by_id)

    @classmethod
    def from_raw(cls, raw_definitions: Iterable[Mapping[str, Any]]) -> "ScenarioCatalog":
        return cls(parse_definition(raw) for raw in raw_definitions)

    def __len__(self) -> int:
        return len(self._simulations)

    def __contains__(self, simulation_id: str) -> bool:
        return simulation_id in self._simulations

    def get_simulation(self, simulation_id: str) -> SimulationDefinitionSchema:
        definition = self._simulations.get(simulation_id)
        if definition is None:
            raise NotFound(f"Simulation {simulation_id!r} not found")
        return definition

    def get_step(self, simulation_id: str, step: int) -> ScenarioStepSchema:
        scenario = self.get_simulation(simulation_id).get_step(step)
        if scenario is None:
            raise NotFound(f"Step {step} of simulation {simulation_id!r} not found")
        return scenario

    def list_simulations(self) -> list[SimulationSummarySchema]:
        return [
            SimulationSummarySchema(
                id=d.id,
                title=d.title,
                description=d.description or d.steps[0].description,
                category=d.category,
                difficulty_level=d.difficulty_level,
                estimated_minutes=d.estimated_minutes,
                total_steps=d.total_steps,
                max_possible_score=d.max_possible_score,
            )
            for d in self._simulations.values()
        ]


def load_catalog(path: str | None = None) -> ScenarioCatalog:
    """Build the catalog from a JSON file, or from the built-in simulations."""
    if path:
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise MalformedDefinition(f"cannot read catalog {path}: {exc}") from exc
        if isinstance(raw, dict):
            raw = raw.get("simulations", [])
        if not isinstance(raw, list):
            raise MalformedDefinition(f"catalog {path} must hold a list of simulations")
    else:
        from app.services.seeding import BUILTIN_SIMULATIONS

        raw = BUILTIN_SIMULATIONS

    catalog = ScenarioCatalog.from_raw(raw)
    logger.info("Loaded %d simulations into the catalog", len(catalog))
    return catalog

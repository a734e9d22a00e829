"""Pydantic schemas for simulation definitions, steps and choices."""
from pydantic import BaseModel, Field


class ChoiceSchema(BaseModel):
    id: str
    text: str
    points_delta: int  # may be negative
    feedback: str = ""
    consequences: str | None = None
    # exactly one of next_step / is_complete holds once the catalog is loaded
    next_step: int | None = None
    is_complete: bool = False

    class Config:
        frozen = True


class ScenarioStepSchema(BaseModel):
    step: int = Field(ge=1)
    title: str = ""
    description: str
    image: str | None = None
    choices: tuple[ChoiceSchema, ...] = ()

    class Config:
        frozen = True

    def get_choice(self, choice_id: str) -> ChoiceSchema | None:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None

    @property
    def is_terminal(self) -> bool:
        """A step without choices ends the walk."""
        return not self.choices

    @property
    def max_points(self) -> int:
        return max((c.points_delta for c in self.choices), default=0)


class SimulationDefinitionSchema(BaseModel):
    id: str
    title: str
    description: str = ""
    category: str | None = None
    difficulty_level: str | None = None
    estimated_minutes: int | None = None
    steps: tuple[ScenarioStepSchema, ...]
    # best-case score along any path, computed when the catalog loads
    max_possible_score: int = 0

    class Config:
        frozen = True

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def get_step(self, step: int) -> ScenarioStepSchema | None:
        if 1 <= step <= len(self.steps):
            return self.steps[step - 1]
        return None


class SimulationSummarySchema(BaseModel):
    id: str
    title: str
    description: str
    category: str | None = None
    difficulty_level: str | None = None
    estimated_minutes: int | None = None
    total_steps: int
    max_possible_score: int


class UserRequestSchema(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    display_name: str | None = Field(default=None, max_length=255)


class ChoiceSubmitSchema(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    choice_id: str = Field(min_length=1)
    step: int | None = Field(default=None, ge=1)
    display_name: str | None = Field(default=None, max_length=255)


class LessonCompleteSchema(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    # stored in 255-char columns behind a "Completed <kind>: " prefix
    title: str = Field(min_length=1, max_length=200)
    category: str | None = Field(default=None, max_length=64)
    display_name: str | None = Field(default=None, max_length=255)


class QuizCompleteSchema(LessonCompleteSchema):
    score_percentage: int = Field(ge=0, le=100)

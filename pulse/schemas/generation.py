import enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pulse.schemas.exercise import Exercise
from pulse.schemas.workout import ExerciseDetail, ExerciseLog, Workout
from pulse.services.errors import PipelineError


class GenerationStateEnum(str, enum.Enum):
    idle = "idle"
    selecting = "selecting"
    prompting = "prompting"
    awaiting_model = "awaiting_model"
    parsing = "parsing"
    reconciling = "reconciling"
    persisted = "persisted"
    timed_out = "timed_out"
    failed = "failed"


TERMINAL_STATES = {
    GenerationStateEnum.persisted,
    GenerationStateEnum.timed_out,
    GenerationStateEnum.failed,
}


class GenerationConfig(BaseModel):
    timeout_seconds: float = 45.0
    settle_delay_seconds: float = 1.0
    prioritized_min_exercises: int = 6
    duration: int = 60
    default_author: str = "PulseAI"
    # Каталог перечитывается, если он устарел или в нем не больше min_catalog_size упражнений
    catalog_max_age_seconds: float = 3600.0
    min_catalog_size: int = 5


class GenerationRequest(BaseModel):
    body_parts: List[str]
    goals: List[str] = Field(default_factory=list)
    additional_goals: str = ""
    prioritized_author_ids: List[str] = Field(default_factory=list)
    require_video: bool = True
    predefined_exercises: List[Exercise] = Field(default_factory=list)

    @property
    def goal_text(self) -> str:
        return f"{','.join(self.goals)} and {self.additional_goals}"


class GenerationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: GenerationStateEnum
    workout: Optional[Workout] = None
    logs: List[ExerciseLog] = Field(default_factory=list)
    missing: List[ExerciseDetail] = Field(default_factory=list)
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.workout is not None

    @property
    def user_message(self) -> str | None:
        return self.error.user_message if self.error else None

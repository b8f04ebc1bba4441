import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from database.models import BodyPartEnum, WorkoutRatingEnum
from pulse.schemas.exercise import Exercise


class RepsAndWeightLog(BaseModel):
    """Один подход. Пустой объект служит заглушкой, пока пользователь не ввел данные."""

    reps: int = 0
    weight: float = 0.0
    left_reps: Optional[int] = None
    left_weight: Optional[float] = None


class ExerciseLog(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workout_id: str
    user_id: str = ""
    exercise: Exercise
    logs: List[RepsAndWeightLog] = Field(default_factory=list)
    feedback: str = ""
    note: str = ""
    is_split: bool = False
    is_body_weight: bool = False
    is_submitted: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def append_set(self, entry: RepsAndWeightLog) -> None:
        self.logs.append(entry)
        self.updated_at = datetime.now()

    def set_is_submitted(self, value: bool) -> None:
        if value and not self.logs:
            raise ValueError("Cannot submit an exercise log without recorded sets")
        self.is_submitted = value
        self.updated_at = datetime.now()


class ExerciseReference(BaseModel):
    exercise: Exercise
    group_id: int = 0


class ExerciseDetail(BaseModel):
    """Промежуточная запись сверки: имя от модели и найденное упражнение каталога."""

    exercise_name: str
    matched_database_exercise: Optional[Exercise] = None
    sets: str = "3"
    reps: List[str] = Field(default_factory=lambda: ["12"])
    weight: str = "0"
    notes: str = ""
    is_split: bool = False
    is_missing: bool = False
    group_id: int = 0
    closest_match: List[Exercise] = Field(default_factory=list)


class Workout(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    exercises: List[ExerciseReference] = Field(default_factory=list)
    logs: List[ExerciseLog] = Field(default_factory=list)
    duration: int = 60
    workout_rating: Optional[WorkoutRatingEnum] = None
    is_completed: bool = False
    author: str = "PulseAI"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_ready(self) -> bool:
        return len(self.exercises) == len(self.logs)


class WorkoutSummary(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workout_id: str
    user_id: str = ""
    body_parts: List[BodyPartEnum] = Field(default_factory=list)
    secondary_body_parts: List[BodyPartEnum] = Field(default_factory=list)
    exercises_completed: List[ExerciseLog] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def calculate_duration(self) -> str:
        """Длительность тренировки в читаемом виде: "1 hour 5 minutes"."""
        if self.completed_at is None:
            return "0 minutes"
        total_minutes = max(int((self.completed_at - self.created_at).total_seconds() // 60), 0)
        hours, minutes = divmod(total_minutes, 60)
        if not hours:
            return f"{minutes} minutes"
        hours_text = "1 hour" if hours == 1 else f"{hours} hours"
        return f"{hours_text} {minutes} minutes" if minutes else hours_text

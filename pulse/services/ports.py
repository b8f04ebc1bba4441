"""
Контракты внешних сервисов, которые использует генерация тренировки.

Реализации на SQLAlchemy лежат в pulse/requests, в тестах используются
фейки в памяти.
"""
from typing import Optional, Protocol

from pulse.schemas.exercise import Exercise
from pulse.schemas.workout import ExerciseLog, Workout
from pulse.services.llm_service import ModelConfig


class CatalogService(Protocol):
    async def get_exercises(self) -> list[Exercise]:
        """Весь каталог. При ошибке CatalogUnavailable."""
        ...

    async def fetch_exercises_by_names(self, names: list[str]) -> list[Exercise]:
        """Только точные совпадения по названию; отсутствие не считается ошибкой."""
        ...


class LLMGateway(Protocol):
    async def send_message(self, prompt: str, config: ModelConfig | None = None) -> str:
        ...


class PersistenceService(Protocol):
    async def save_workout(self, workout: Workout) -> None:
        ...

    async def update_workout_session(
        self, workout: Workout, logs: list[ExerciseLog], workout_id: str
    ) -> None:
        ...

    async def fetch_workout(self, workout_id: str) -> Optional[Workout]:
        ...


class PromptTemplateSource(Protocol):
    async def get_workout_prompt(self) -> str:
        ...

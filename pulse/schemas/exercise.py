from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from database.models import BodyPartEnum, ExerciseCategoryEnum


class ExerciseVideo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    username: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def is_playable(self) -> bool:
        return bool(self.video_url)


class Exercise(BaseModel):
    """Упражнение из каталога. Ядро его только читает."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: ExerciseCategoryEnum = ExerciseCategoryEnum.weight_training
    primary_body_parts: List[BodyPartEnum] = Field(default_factory=list)
    secondary_body_parts: List[BodyPartEnum] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    steps: List[str] = Field(default_factory=list)
    videos: List[ExerciseVideo] = Field(default_factory=list)
    sets: int = 3
    reps: str = "12"
    weight: float = 0.0
    is_body_weight: bool = False
    author: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_playable_video(self) -> bool:
        return any(video.is_playable for video in self.videos)


class CatalogSnapshot(BaseModel):
    """
    Неизменяемый снимок каталога. Каждый этап пайплайна получает один и тот же
    снимок; обновление каталога создает новый снимок со следующей версией.
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    exercises: tuple[Exercise, ...] = ()
    loaded_at: datetime = Field(default_factory=datetime.now)

    def __len__(self) -> int:
        return len(self.exercises)

    @property
    def names(self) -> list[str]:
        return [exercise.name for exercise in self.exercises]

    def is_stale(self, max_age_seconds: float, now: datetime | None = None) -> bool:
        age = ((now or datetime.now()) - self.loaded_at).total_seconds()
        return age > max_age_seconds

    def next(self, exercises: list[Exercise]) -> "CatalogSnapshot":
        return CatalogSnapshot(version=self.version + 1, exercises=tuple(exercises))

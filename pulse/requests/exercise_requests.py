import logging
from typing import List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from database.models import Exercise, ExerciseVideo
from pulse.schemas.exercise import Exercise as ExerciseSchema
from pulse.services.errors import CatalogUnavailable

logger = logging.getLogger(__name__)


async def clear_exercises(session: AsyncSession) -> None:
    """Удаляет все упражнения из базы данных."""
    await session.execute(delete(Exercise))
    await session.commit()


async def add_exercises_bulk(
    session: AsyncSession, exercises: list[ExerciseSchema]
) -> None:
    """Добавляет несколько упражнений вместе с видео."""
    exercise_objects = [
        Exercise(
            **ex.model_dump(
                mode="json", exclude={"videos", "category", "created_at", "updated_at"}
            ),
            category=ex.category,
            videos=[
                ExerciseVideo(**video.model_dump()) for video in ex.videos
            ],
        )
        for ex in exercises
    ]
    session.add_all(exercise_objects)
    await session.commit()


async def get_all_exercises(session: AsyncSession) -> Sequence[Exercise]:
    """Весь каталог в порядке добавления."""
    stmt = (
        select(Exercise)
        .options(selectinload(Exercise.videos))
        .order_by(Exercise.created_at, Exercise.name)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_exercises_by_names(
    session: AsyncSession, names: List[str]
) -> Sequence[Exercise]:
    """Получает упражнения по списку названий (точное совпадение)."""
    if not names:
        return []
    stmt = (
        select(Exercise)
        .where(Exercise.name.in_(names))
        .options(selectinload(Exercise.videos))
    )
    result = await session.execute(stmt)
    return result.scalars().all()


class ExerciseCatalog:
    """Каталог упражнений поверх БД."""

    def __init__(self, session_pool: async_sessionmaker):
        self.session_pool = session_pool

    async def get_exercises(self) -> list[ExerciseSchema]:
        try:
            async with self.session_pool() as session:
                rows = await get_all_exercises(session)
                return [ExerciseSchema.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load exercise catalog: {e}", exc_info=True)
            raise CatalogUnavailable(str(e)) from e

    async def fetch_exercises_by_names(self, names: list[str]) -> list[ExerciseSchema]:
        try:
            async with self.session_pool() as session:
                rows = await get_exercises_by_names(session, names)
                return [ExerciseSchema.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch exercises by names: {e}", exc_info=True)
            raise CatalogUnavailable(str(e)) from e

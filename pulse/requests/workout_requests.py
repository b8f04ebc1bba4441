import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from database.models import Exercise, ExerciseLog, Workout, WorkoutExercise
from pulse.schemas.exercise import Exercise as ExerciseSchema
from pulse.schemas.workout import (
    ExerciseLog as ExerciseLogSchema,
    ExerciseReference,
    RepsAndWeightLog,
    Workout as WorkoutSchema,
)
from pulse.services.errors import PersistenceError

logger = logging.getLogger(__name__)

WORKOUT_LOAD_OPTIONS = (
    selectinload(Workout.workout_exercises)
    .selectinload(WorkoutExercise.exercise)
    .selectinload(Exercise.videos),
    selectinload(Workout.exercise_logs),
)


def _log_row(log: ExerciseLogSchema) -> ExerciseLog:
    return ExerciseLog(
        id=log.id,
        workout_id=log.workout_id,
        user_id=log.user_id,
        exercise_snapshot=log.exercise.model_dump(mode="json"),
        sets=[entry.model_dump() for entry in log.logs],
        feedback=log.feedback,
        note=log.note,
        is_split=log.is_split,
        is_body_weight=log.is_body_weight,
        is_submitted=log.is_submitted,
        created_at=log.created_at,
        updated_at=log.updated_at,
    )


def _log_schema(row: ExerciseLog) -> ExerciseLogSchema:
    return ExerciseLogSchema(
        id=row.id,
        workout_id=row.workout_id,
        user_id=row.user_id or "",
        exercise=ExerciseSchema.model_validate(row.exercise_snapshot),
        logs=[RepsAndWeightLog.model_validate(entry) for entry in row.sets or []],
        feedback=row.feedback or "",
        note=row.note or "",
        is_split=row.is_split,
        is_body_weight=row.is_body_weight,
        is_submitted=row.is_submitted,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_workout_schema(row: Workout) -> WorkoutSchema:
    return WorkoutSchema(
        id=row.id,
        exercises=[
            ExerciseReference(
                exercise=ExerciseSchema.model_validate(we.exercise), group_id=we.group_id
            )
            for we in row.workout_exercises
        ],
        logs=[_log_schema(log) for log in row.exercise_logs],
        duration=row.duration,
        workout_rating=row.workout_rating,
        is_completed=row.is_completed,
        author=row.author,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


async def get_workout_with_exercises(session: AsyncSession, workout_id: str) -> Workout | None:
    """Тренировка вместе с упражнениями, их видео и логами."""
    stmt = select(Workout).where(Workout.id == workout_id).options(*WORKOUT_LOAD_OPTIONS)
    result = await session.execute(stmt)
    return result.scalars().first()


async def _upsert_workout(
    session: AsyncSession, workout: WorkoutSchema, user_id: str
) -> Workout:
    row = await get_workout_with_exercises(session, workout.id)
    if row is None:
        row = Workout(id=workout.id, user_id=user_id, exercise_logs=[])
        session.add(row)

    row.duration = workout.duration
    row.workout_rating = workout.workout_rating
    row.is_completed = workout.is_completed
    row.author = workout.author
    row.created_at = workout.created_at
    row.updated_at = workout.updated_at
    row.workout_exercises = [
        WorkoutExercise(exercise_id=ref.exercise.id, group_id=ref.group_id, order=order)
        for order, ref in enumerate(workout.exercises)
    ]
    return row


async def save_workout(session: AsyncSession, workout: WorkoutSchema, user_id: str) -> None:
    """Сохраняет тренировку и ссылки на упражнения."""
    await _upsert_workout(session, workout, user_id)
    await session.commit()


async def update_workout_session(
    session: AsyncSession,
    workout: WorkoutSchema,
    logs: list[ExerciseLogSchema],
    workout_id: str,
    user_id: str,
) -> None:
    """Сохраняет тренировку и заменяет ее логи."""
    row = await _upsert_workout(session, workout.model_copy(update={"id": workout_id}), user_id)

    # Существующие логи обновляем на месте, чтобы не пересоздавать строки с тем же id
    existing = {log_row.id: log_row for log_row in row.exercise_logs}
    merged = []
    for log in logs:
        new_row = _log_row(log.model_copy(update={"workout_id": workout_id}))
        current = existing.get(log.id)
        if current is None:
            merged.append(new_row)
            continue
        for column in ExerciseLog.__table__.columns.keys():
            setattr(current, column, getattr(new_row, column))
        merged.append(current)
    row.exercise_logs = merged
    await session.commit()


class WorkoutRepository:
    """Хранилище тренировок пользователя."""

    def __init__(self, session_pool: async_sessionmaker, user_id: str):
        self.session_pool = session_pool
        self.user_id = user_id

    async def save_workout(self, workout: WorkoutSchema) -> None:
        try:
            async with self.session_pool() as session:
                await save_workout(session, workout, self.user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save workout {workout.id}: {e}", exc_info=True)
            raise PersistenceError(str(e)) from e

    async def update_workout_session(
        self, workout: WorkoutSchema, logs: list[ExerciseLogSchema], workout_id: str
    ) -> None:
        try:
            async with self.session_pool() as session:
                await update_workout_session(session, workout, logs, workout_id, self.user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update workout session {workout_id}: {e}", exc_info=True)
            raise PersistenceError(str(e)) from e

    async def fetch_workout(self, workout_id: str) -> WorkoutSchema | None:
        try:
            async with self.session_pool() as session:
                row = await get_workout_with_exercises(session, workout_id)
                return to_workout_schema(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch workout {workout_id}: {e}", exc_info=True)
            raise PersistenceError(str(e)) from e

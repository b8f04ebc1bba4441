"""
Сверка названий упражнений от LLM с каталогом и сборка тренировки.

Упражнения, которых нет в каталоге, помечаются `is_missing` и в тренировку
не попадают. Для каждой ссылки на упражнение создается ровно один лог,
поэтому `len(workout.exercises) == len(workout.logs)`.
"""
import logging
from datetime import datetime
from typing import Sequence

from pydantic import BaseModel
from rapidfuzz import fuzz, process

from pulse.schemas.exercise import Exercise
from pulse.schemas.workout import (
    ExerciseDetail,
    ExerciseLog,
    ExerciseReference,
    RepsAndWeightLog,
    Workout,
)
from pulse.services.errors import MalformedResponseError, ReconciliationGap

logger = logging.getLogger(__name__)

DEFAULT_SETS = 3
DEFAULT_REPS = 12
DEFAULT_DURATION = 60
DEFAULT_AUTHOR = "PulseAI"

CLOSEST_MATCH_LIMIT = 3
CLOSEST_MATCH_CUTOFF = 60


class ReconciliationResult(BaseModel):
    workout: Workout
    logs: list[ExerciseLog]
    missing: list[ExerciseDetail]


def flatten_names(groups: list[list[str]]) -> list[str]:
    return list(dict.fromkeys(name for group in groups for name in group))


def closest_matches(name: str, catalog: Sequence[Exercise]) -> list[Exercise]:
    """Похожие упражнения каталога для названия, которое не нашлось."""
    if not catalog:
        return []
    matches = process.extract(
        name,
        [exercise.name for exercise in catalog],
        scorer=fuzz.token_set_ratio,
        limit=CLOSEST_MATCH_LIMIT,
        score_cutoff=CLOSEST_MATCH_CUTOFF,
    )
    return [catalog[index] for _, _, index in matches]


def detail_for(exercise: Exercise, group_id: int, name: str | None = None) -> ExerciseDetail:
    return ExerciseDetail(
        exercise_name=name or exercise.name,
        matched_database_exercise=exercise,
        sets=str(exercise.sets),
        reps=[exercise.reps],
        weight="0" if exercise.is_body_weight else str(exercise.weight),
        group_id=group_id,
    )


def build_exercise_details(
    groups: list[list[str]],
    fetched: Sequence[Exercise],
    catalog: Sequence[Exercise] = (),
) -> list[ExerciseDetail]:
    """
    Сопоставляет группы названий с найденными упражнениями. Индекс группы
    становится group_id, порядок внутри группы берется из ответа модели.
    """
    by_name = {exercise.name: exercise for exercise in fetched}
    details: list[ExerciseDetail] = []
    for group_id, names in enumerate(groups):
        for name in dict.fromkeys(names):
            exercise = by_name.get(name)
            if exercise is not None:
                details.append(detail_for(exercise, group_id, name))
            else:
                details.append(
                    ExerciseDetail(
                        exercise_name=name,
                        is_missing=True,
                        group_id=group_id,
                        closest_match=closest_matches(name, catalog),
                    )
                )
    return details


def details_from_workout(workout: Workout) -> list[ExerciseDetail]:
    return [detail_for(ref.exercise, ref.group_id) for ref in workout.exercises]


def _to_int(value: str, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: str, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def build_log(detail: ExerciseDetail, workout_id: str, user_id: str) -> ExerciseLog:
    exercise = detail.matched_database_exercise
    sets = _to_int(detail.sets, DEFAULT_SETS)
    reps = detail.reps[-1] if detail.reps else str(DEFAULT_REPS)
    weight = 0.0 if exercise.is_body_weight else _to_float(detail.weight)
    now = datetime.now()
    return ExerciseLog(
        workout_id=workout_id,
        user_id=user_id,
        exercise=exercise.model_copy(update={"sets": sets, "reps": reps, "weight": weight}),
        logs=[
            RepsAndWeightLog(reps=_to_int(reps, DEFAULT_REPS), weight=weight)
            for _ in range(sets)
        ],
        note=detail.notes,
        is_split=detail.is_split,
        is_body_weight=exercise.is_body_weight,
        created_at=now,
        updated_at=now,
    )


def assemble_workout(
    details: list[ExerciseDetail],
    user_id: str,
    author: str | None = None,
    duration: int = DEFAULT_DURATION,
    default_author: str = DEFAULT_AUTHOR,
) -> tuple[Workout, list[ExerciseLog]]:
    """Собирает тренировку и логи из сопоставленных записей."""
    workout = Workout(duration=duration, author=author or default_author)
    references: list[ExerciseReference] = []
    logs: list[ExerciseLog] = []
    for detail in details:
        if detail.is_missing or detail.matched_database_exercise is None:
            continue
        references.append(
            ExerciseReference(exercise=detail.matched_database_exercise, group_id=detail.group_id)
        )
        logs.append(build_log(detail, workout.id, user_id))

    workout.exercises = references
    workout.logs = logs
    return workout, logs


def reconcile(
    groups: list[list[str]],
    fetched: Sequence[Exercise],
    user_id: str,
    catalog: Sequence[Exercise] = (),
    author: str | None = None,
    duration: int = DEFAULT_DURATION,
    default_author: str = DEFAULT_AUTHOR,
) -> ReconciliationResult:
    details = build_exercise_details(groups, fetched, catalog)
    missing = [detail for detail in details if detail.is_missing]
    if missing:
        gap = ReconciliationGap([detail.exercise_name for detail in missing])
        closest = {d.exercise_name: [e.name for e in d.closest_match] for d in missing}
        logger.warning(f"{gap}. Closest catalog matches: {closest}")

    workout, logs = assemble_workout(details, user_id, author, duration, default_author)
    if not workout.exercises:
        raise MalformedResponseError("None of the generated exercises exist in the catalog")
    return ReconciliationResult(workout=workout, logs=logs, missing=missing)


def synthesize_missing_logs(
    workout: Workout, logs: list[ExerciseLog], user_id: str
) -> list[ExerciseLog]:
    """Добавляет пустые логи для упражнений тренировки, у которых лога нет."""
    if len(workout.exercises) == len(logs):
        return list(logs)

    logged_names = {log.exercise.name for log in logs}
    result = list(logs)
    now = datetime.now()
    for ref in workout.exercises:
        if ref.exercise.name in logged_names:
            continue
        result.append(
            ExerciseLog(
                workout_id=workout.id,
                user_id=user_id,
                exercise=ref.exercise,
                logs=[RepsAndWeightLog() for _ in range(ref.exercise.sets)],
                is_body_weight=ref.exercise.is_body_weight,
                created_at=now,
                updated_at=now,
            )
        )
        logged_names.add(ref.exercise.name)
    return result

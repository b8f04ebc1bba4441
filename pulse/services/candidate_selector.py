import logging
from typing import Iterable, Sequence

from database.models import BodyPartEnum
from pulse.schemas.exercise import Exercise

logger = logging.getLogger(__name__)

PRIORITIZED_MIN_EXERCISES = 6


def matches_body_parts(exercise: Exercise, targets: set[BodyPartEnum]) -> bool:
    return not targets.isdisjoint(exercise.primary_body_parts)


def _unique_names(exercises: Iterable[Exercise]) -> list[str]:
    # dict сохраняет порядок каталога
    return list(dict.fromkeys(exercise.name for exercise in exercises))


def select_candidate_names(
    exercises: Sequence[Exercise],
    target_body_parts: Iterable[BodyPartEnum],
    prioritized_author_ids: Iterable[str] = (),
    require_video: bool = True,
    min_count: int = PRIORITIZED_MIN_EXERCISES,
) -> list[str]:
    """
    Формирует список названий упражнений для промпта.

    Упражнения отбираются по основным частям тела, при `require_video`
    только с воспроизводимым видео. Если заданы приоритетные авторы, берутся
    только упражнения с их видео, но если таких меньше `min_count`,
    используется весь отфильтрованный список, чтобы тренировка не вышла
    слишком короткой.
    """
    targets = set(target_body_parts)
    candidates = [ex for ex in exercises if matches_body_parts(ex, targets)]
    if require_video:
        candidates = [ex for ex in candidates if ex.has_playable_video]

    prioritized_ids = set(prioritized_author_ids)
    if not prioritized_ids:
        return _unique_names(candidates)

    prioritized = [
        ex
        for ex in candidates
        if any(video.user_id in prioritized_ids for video in ex.videos)
    ]
    prioritized_names = _unique_names(prioritized)
    if len(prioritized_names) < min_count:
        logger.info(
            f"Only {len(prioritized_names)} exercises from prioritized authors "
            f"(minimum {min_count}), falling back to {len(candidates)} candidates"
        )
        return _unique_names(candidates)
    return prioritized_names

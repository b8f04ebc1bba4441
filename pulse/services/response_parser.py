"""
Разбор текстовых ответов LLM.

Оба парсера намеренно узкие: они понимают ровно тот формат, который
запрашивается в промпте, и не пытаются угадывать всё остальное.
"""
import logging

from database.models import FoodCategoryEnum
from pulse.schemas.nutrition import Meal
from pulse.services.errors import MalformedResponseError

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = "], ["
NAME_SEPARATOR = ", "

CALORIES_PER_GRAM_PROTEIN = 4
CALORIES_PER_GRAM_CARBS = 4
CALORIES_PER_GRAM_FAT = 9


def calculate_calories(protein: int, carbs: int, fat: int) -> int:
    return (
        protein * CALORIES_PER_GRAM_PROTEIN
        + carbs * CALORIES_PER_GRAM_CARBS
        + fat * CALORIES_PER_GRAM_FAT
    )


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except ValueError:
        return 0


def _parse_categories(value: str) -> list[FoodCategoryEnum]:
    categories = []
    for raw in value.split(","):
        try:
            categories.append(FoodCategoryEnum(raw.strip()))
        except ValueError:
            logger.debug(f"Unknown food category '{raw.strip()}' ignored")
    return categories


def parse_nutrition_info(text: str, caption: str = "") -> Meal:
    """
    Разбирает ответ вида `key: value` построчно. Неизвестные ключи
    игнорируются, отсутствующие числа равны 0. Калории всегда
    пересчитываются из БЖУ, значение модели не используется.
    """
    fields: dict[str, str] = {}
    for line in text.replace("*", "").splitlines():
        key, sep, value = line.strip().partition(":")
        if not sep:
            continue
        fields[key.strip().lower()] = value.strip()

    protein = _to_int(fields.get("protein", "0"))
    carbs = _to_int(fields.get("carbs", "0"))
    fat = _to_int(fields.get("fat", "0"))

    return Meal(
        name=fields.get("name", ""),
        categories=_parse_categories(fields["category"]) if "category" in fields else [],
        caption=caption,
        calories=calculate_calories(protein, carbs, fat),
        protein=protein,
        carbs=carbs,
        fat=fat,
    )


def dump_nutrition(meal: Meal) -> str:
    """Обратное преобразование в формат `key: value`."""
    lines = [
        f"name: {meal.name}",
        f"calories: {meal.calories}",
        f"protein: {meal.protein}",
        f"carbs: {meal.carbs}",
        f"fat: {meal.fat}",
    ]
    if meal.categories:
        lines.append(f"category: {', '.join(c.value for c in meal.categories)}")
    return "\n".join(lines)


def parse_exercise_groups(text: str) -> list[list[str]]:
    """
    Разбирает `[[ex1, ex2], [ex3]]` в `[["ex1", "ex2"], ["ex3"]]`.

    Это не JSON: внешние скобки снимаются, группы делятся по "], [",
    названия внутри группы по ", ". Всё, что не укладывается в этот
    формат, считается MalformedResponseError.
    """
    stripped = text.strip()
    if not (stripped.startswith("[[") and stripped.endswith("]]")):
        raise MalformedResponseError(f"Unexpected exercise list shape: {stripped[:80]!r}")

    inner = stripped[2:-2]
    if not inner.strip():
        raise MalformedResponseError("Exercise list is empty")

    groups = []
    for chunk in inner.split(GROUP_SEPARATOR):
        names = [name.strip() for name in chunk.split(NAME_SEPARATOR)]
        if any(not name or "[" in name or "]" in name for name in names):
            raise MalformedResponseError(f"Malformed exercise group: {chunk!r}")
        groups.append(names)
    return groups

import logging
import re

from pydantic import BaseModel

from database.models import BodyPartEnum
from pulse.services.errors import PromptRenderError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# "back" составная часть тела: в каталоге это три отдельных ключа,
# а в тексте промпта три анатомических названия.
BACK_BODY_PART_KEYS = (BodyPartEnum.lats, BodyPartEnum.traps, BodyPartEnum.rhomboids)
BACK_BODY_PART_NAMES = ("latissimus dorsi", "trapezius", "rhomboids")

# Шаблон по умолчанию, если в удаленном хранилище ничего нет
DEFAULT_WORKOUT_PROMPT = """
You are an experienced strength coach building a single workout session.

Target body parts: {{bodyParts}}
User goal: {{goal}}

Choose exercises ONLY from this list (names must match exactly):
{{exerciseList}}

If the list above is too short, you may also use exercises from the full catalog:
{{allExercises}}

Exercises the user already picked and that MUST be included: {{withPreDefinedExercises}}

Group exercises that should be performed together as a superset.
Respond ONLY with a bracketed list of groups and nothing else, for example:
[[Exercise A, Exercise B], [Exercise C], [Exercise D, Exercise E]]
"""


class PromptVariables(BaseModel):
    body_parts: str = ""
    goal: str = ""
    exercise_list: str = ""
    all_exercises: str = ""
    with_predefined_exercises: str = ""

    def as_placeholders(self) -> dict[str, str]:
        return {
            "bodyParts": self.body_parts,
            "goal": self.goal,
            "exerciseList": self.exercise_list,
            "allExercises": self.all_exercises,
            "withPreDefinedExercises": self.with_predefined_exercises,
        }


def expand_body_part_keys(body_parts: list[str]) -> list[BodyPartEnum]:
    """Переводит ввод пользователя в ключи каталога. Неизвестные части пропускаются."""
    result: list[BodyPartEnum] = []
    for body_part in body_parts:
        value = body_part.strip().lower()
        if value == "back":
            result.extend(BACK_BODY_PART_KEYS)
            continue
        try:
            result.append(BodyPartEnum(value))
        except ValueError:
            logger.debug(f"Unknown body part '{body_part}' skipped")
    return result


def expand_body_part_names(body_parts: list[str]) -> list[str]:
    """Названия частей тела для текста промпта."""
    result: list[str] = []
    for body_part in body_parts:
        if body_part.strip().lower() == "back":
            result.extend(BACK_BODY_PART_NAMES)
        else:
            result.append(body_part)
    return result


def render_prompt(template: str, variables: PromptVariables) -> str:
    """
    Подставляет значения в шаблон за один проход. Любой оставшийся {{токен}}
    считается ошибкой конфигурации шаблона.
    """
    values = variables.as_placeholders()
    unresolved: list[str] = []

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key in values:
            return values[key]
        unresolved.append(key)
        return match.group(0)

    prompt = PLACEHOLDER_PATTERN.sub(substitute, template)
    if unresolved:
        raise PromptRenderError(unresolved)
    return prompt

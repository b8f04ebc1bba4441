import json
import logging
from datetime import timedelta

from database.models import FoodCategoryEnum
from pulse.schemas.nutrition import Meal, MacroTargets
from pulse.schemas.workout import ExerciseLog, WorkoutSummary
from pulse.services.llm_service import LLMService, ModelConfig, ModelTier
from pulse.services.response_parser import parse_nutrition_info

logger = logging.getLogger(__name__)

MAX_REPORTED_DURATION = timedelta(hours=2)

NUTRITION_FORMAT = """name: name of the meal(Choose a name that best describes the food).
calories: value
protein: value(number is in grams however ONLY SHOW NUMERIC VALUE)
carbs: value(number is in grams however ONLY SHOW NUMERIC VALUE)
fat: value(number is in grams however ONLY SHOW NUMERIC VALUE)"""

SCAN_FOOD_PROMPT = """Identify, and analyze the following image of food and provide an estimation of its macronutrients in the following format:
{nutrition_format}
"""

ANALYZE_MEAL_PROMPT = """Analyze the following description of a meal:'{title}-'
'{description}'

food and provide an estimation of its macronutrients in the following format:
{nutrition_format}
category: value(choose one or more categories from the list provided)

Here's the list of categories:
{categories}
"""

RECOMMEND_MACROS_PROMPT = """Can you recommend macros that I should eat for the day based on my goals:'{goals}'

Provide me with the macronutrients in the following format:
name: Macronutrients.
calories: value
protein: value(number is in grams however ONLY SHOW NUMERIC VALUE)
carbs: value(number is in grams however ONLY SHOW NUMERIC VALUE)
fat: value(number is in grams however ONLY SHOW NUMERIC VALUE)
"""

CALORIES_BURNED_PROMPT = """Estimate the total calories burned during a workout given the following details:

- Duration: {duration}
- Exercises and reps/sets completed: {exercises}

Respond with only the numeric value of the total calories burned, without any additional explanations or text.
"""


def format_workout_data(logs: list[ExerciseLog]) -> dict:
    """Краткое описание выполненных упражнений для промпта."""
    exercises = []
    for log in logs:
        first = log.logs[0] if log.logs else None
        data = {
            "name": log.exercise.name,
            "sets": len(log.logs),
            "reps": first.reps if first else 0,
            "weight": first.weight if first else 0.0,
        }
        if log.is_split:
            data["leftReps"] = (first.left_reps if first else None) or 0
            data["leftWeight"] = (first.left_weight if first else None) or 0.0
        if log.is_body_weight:
            data["isBodyWeight"] = True
        exercises.append(data)
    return {"exercises": exercises}


class NutritionService:
    """Оценка питания и расхода калорий через LLM."""

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def scan_food(self, base64_image: str, caption: str = "") -> Meal:
        prompt = SCAN_FOOD_PROMPT.format(nutrition_format=NUTRITION_FORMAT)
        response = await self.llm.send_image_and_message(
            base64_image, prompt, ModelConfig(tier=ModelTier.quality, max_tokens=1024)
        )
        return parse_nutrition_info(response, caption=caption)

    async def analyze_meal(self, title: str, description: str, caption: str = "") -> Meal:
        prompt = ANALYZE_MEAL_PROMPT.format(
            title=title,
            description=description,
            nutrition_format=NUTRITION_FORMAT,
            categories="\n".join(f"- {category.value}" for category in FoodCategoryEnum),
        )
        response = await self.llm.send_message(
            prompt, ModelConfig(tier=ModelTier.quality, max_tokens=300, temperature=0.5)
        )
        return parse_nutrition_info(response, caption=caption)

    async def recommend_macros(self, goals: str) -> MacroTargets:
        response = await self.llm.send_message(
            RECOMMEND_MACROS_PROMPT.format(goals=goals),
            ModelConfig(tier=ModelTier.quality, max_tokens=200, temperature=0.5),
        )
        meal = parse_nutrition_info(response)
        targets = MacroTargets(
            calories=meal.calories, protein=meal.protein, carbs=meal.carbs, fat=meal.fat
        )
        logger.info(f"Recommended macros for goals '{goals}': {targets}")
        return targets

    async def estimate_calories_burned(self, summary: WorkoutSummary) -> str:
        """Возвращает сырой ответ модели: только число калорий."""
        duration = summary.calculate_duration()
        if summary.completed_at is not None:
            if summary.completed_at - summary.created_at > MAX_REPORTED_DURATION:
                duration = "2 hours"

        prompt = CALORIES_BURNED_PROMPT.format(
            duration=duration,
            exercises=json.dumps(format_workout_data(summary.exercises_completed)),
        )
        response = await self.llm.send_message(
            prompt, ModelConfig(tier=ModelTier.fast, max_tokens=50, temperature=0.3)
        )
        return response.strip()

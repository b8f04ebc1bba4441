import asyncio
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

# Добавляем корневую директорию проекта в sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.connection import create_session_pool, create_tables
from pulse.requests.config_requests import WORKOUT_PROMPT_KEY, set_config_value
from pulse.requests.exercise_requests import add_exercises_bulk, clear_exercises
from pulse.schemas.exercise import Exercise


def load_exercises(json_path: Path) -> list[Exercise]:
    """Читает каталог упражнений: JSON-массив объектов упражнений."""
    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [Exercise.model_validate(item) for item in data]


async def main():
    """
    Очищает каталог и заново заполняет его упражнениями из JSON-файла.
    Если задан файл шаблона промпта, он тоже записывается в БД.
    """
    load_dotenv()
    json_path = Path(os.getenv("EXERCISES_JSON_PATH", "exercises.json"))
    prompt_path = os.getenv("WORKOUT_PROMPT_PATH")

    print("Начинаю процесс заполнения базы данных упражнениями...")

    try:
        exercises = load_exercises(json_path)
        print(f"✅ JSON-файл загружен: {len(exercises)} упражнений.")
    except FileNotFoundError:
        print(f"❌ Ошибка: Файл '{json_path}' не найден.")
        return
    except json.JSONDecodeError:
        print("❌ Ошибка: Не удалось декодировать JSON из файла.")
        return
    except ValidationError as e:
        print(f"❌ Ошибка: Некорректные данные упражнений:\n{e}")
        return

    if not exercises:
        print("⚠️ Упражнения для добавления не найдены.")
        return

    await create_tables()
    session_pool = create_session_pool()

    async with session_pool() as session:
        print("Очищаю таблицу 'exercises'...")
        await clear_exercises(session)

        print("Добавляю новые упражнения в базу данных...")
        await add_exercises_bulk(session, exercises)
        print(f"✅ База данных успешно заполнена {len(exercises)} упражнениями.")

        if prompt_path:
            template = Path(prompt_path).read_text(encoding="utf-8")
            await set_config_value(session, WORKOUT_PROMPT_KEY, template)
            print(f"✅ Шаблон промпта обновлен из '{prompt_path}'.")


if __name__ == "__main__":
    asyncio.run(main())

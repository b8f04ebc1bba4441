import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.redis import RedisStorage
from redis.asyncio import Redis

from config.logging import setup_logging
from database.connection import create_session_pool, create_tables
from pulse.config.settings import settings
from pulse.handlers import main_router
from pulse.middlewares.db import DbSessionMiddleware, WorkoutServiceMiddleware
from pulse.requests.config_requests import PromptTemplateStore
from pulse.requests.exercise_requests import ExerciseCatalog
from pulse.requests.workout_requests import WorkoutRepository
from pulse.schemas.generation import GenerationConfig
from pulse.services.llm_service import LLMService
from pulse.services.workout_service import WorkoutService

logger = logging.getLogger(__name__)


def build_generation_config() -> GenerationConfig:
    return GenerationConfig(
        timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
        settle_delay_seconds=settings.SETTLE_DELAY_SECONDS,
        prioritized_min_exercises=settings.PRIORITIZED_MIN_EXERCISES,
        duration=settings.WORKOUT_DURATION_MINUTES,
        default_author=settings.DEFAULT_WORKOUT_AUTHOR,
        catalog_max_age_seconds=settings.CATALOG_MAX_AGE_SECONDS,
        min_catalog_size=settings.MIN_CATALOG_SIZE,
    )


async def main():
    """Основная функция запуска бота"""
    setup_logging()
    logger.info("Запуск бота...")

    await create_tables()

    # Redis для FSM
    redis = Redis.from_url(settings.REDIS_URL)
    storage = RedisStorage(redis=redis)

    bot = Bot(token=settings.BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher(storage=storage)

    session_pool = create_session_pool()
    catalog = ExerciseCatalog(session_pool)
    llm = LLMService.from_settings(settings)
    templates = PromptTemplateStore(session_pool)
    generation_config = build_generation_config()

    def workout_service_factory(user_id: str) -> WorkoutService:
        return WorkoutService(
            user_id=user_id,
            catalog=catalog,
            llm=llm,
            persistence=WorkoutRepository(session_pool, user_id),
            templates=templates,
            config=generation_config,
        )

    dp.update.middleware(DbSessionMiddleware(session_pool=session_pool))
    dp.update.middleware(WorkoutServiceMiddleware(factory=workout_service_factory))

    dp.include_router(main_router)

    try:
        await bot.delete_webhook(drop_pending_updates=True)
        await dp.start_polling(bot)
    finally:
        await bot.session.close()
        await redis.aclose()
        logger.info("Бот остановлен")


if __name__ == "__main__":
    asyncio.run(main())

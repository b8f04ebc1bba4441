import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import AppConfig
from pulse.services.prompt_builder import DEFAULT_WORKOUT_PROMPT

logger = logging.getLogger(__name__)

WORKOUT_PROMPT_KEY = "workout_prompt"


async def get_config_value(session: AsyncSession, key: str) -> str | None:
    stmt = select(AppConfig.value).where(AppConfig.key == key)
    result = await session.execute(stmt)
    return result.scalars().first()


async def set_config_value(session: AsyncSession, key: str, value: str) -> None:
    """Создает или обновляет значение настройки."""
    config = await session.get(AppConfig, key)
    if config is None:
        session.add(AppConfig(key=key, value=value))
    else:
        config.value = value
    await session.commit()


class PromptTemplateStore:
    """
    Шаблон промпта хранится в БД и меняется без выпуска новой версии.
    Если записи нет или БД недоступна, используется шаблон по умолчанию.
    """

    def __init__(
        self,
        session_pool: async_sessionmaker,
        key: str = WORKOUT_PROMPT_KEY,
        default: str = DEFAULT_WORKOUT_PROMPT,
    ):
        self.session_pool = session_pool
        self.key = key
        self.default = default

    async def get_workout_prompt(self) -> str:
        try:
            async with self.session_pool() as session:
                template = await get_config_value(session, self.key)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to load prompt template '{self.key}', using default: {e}")
            return self.default
        if not template:
            logger.info(f"Prompt template '{self.key}' is not configured, using default")
            return self.default
        return template

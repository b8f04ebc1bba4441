from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from database.models import Base
from pulse.config.settings import settings

engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, echo=False, pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


def create_session_pool() -> async_sessionmaker:
    """Пул сессий, который получают репозитории и middleware."""
    return async_session_maker


async def create_tables() -> None:
    """Создает недостающие таблицы каталога, тренировок и настроек."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

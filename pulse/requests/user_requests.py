from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Follow


async def get_prioritized_author_ids(session: AsyncSession, user_id: str) -> list[str]:
    """Авторы, чей контент пользователь отметил как приоритетный."""
    stmt = select(Follow.to_user_id).where(
        Follow.user_id == user_id,
        Follow.is_user_content_prioritized.is_(True),
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())

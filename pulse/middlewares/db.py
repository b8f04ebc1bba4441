from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from sqlalchemy.ext.asyncio import async_sessionmaker

from pulse.services.workout_service import WorkoutService


class DbSessionMiddleware(BaseMiddleware):
    """Открывает сессию БД на каждое событие и кладет ее в data["session"]."""

    def __init__(self, session_pool: async_sessionmaker):
        super().__init__()
        self.session_pool = session_pool

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.session_pool() as session:
            data["session"] = session
            return await handler(event, data)


class WorkoutServiceMiddleware(BaseMiddleware):
    """
    Отдает хендлерам оркестратор генерации текущего пользователя.
    У каждого пользователя свой экземпляр, генерации разных пользователей не пересекаются.
    """

    def __init__(self, factory: Callable[[str], WorkoutService]):
        super().__init__()
        self.factory = factory
        self.services: Dict[str, WorkoutService] = {}

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = data.get("event_from_user")
        if user is not None:
            user_id = str(user.id)
            if user_id not in self.services:
                self.services[user_id] = self.factory(user_id)
            data["workout_service"] = self.services[user_id]
        return await handler(event, data)

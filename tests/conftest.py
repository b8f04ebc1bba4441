import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database.models import Base
from tests.fakes import FakeCatalog, FakeLLM, FakePersistence, FakeTemplateSource


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def persistence():
    return FakePersistence()


@pytest.fixture
def templates():
    return FakeTemplateSource()


@pytest.fixture
def llm():
    return FakeLLM(response="[[Squat, Lunge], [Plank]]")


@pytest.fixture
async def session_pool():
    """SQLite в памяти: одно соединение на все сессии теста."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()

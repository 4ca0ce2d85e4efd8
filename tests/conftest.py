import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shiftly_access.infrastructure.cache.permission_cache import PermissionCache
from shiftly_access.infrastructure.db.models import Base
from shiftly_access.seed import seed_catalog
from tests.fixtures.db_helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PermissionCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def db_url(tmp_path):
    # file database: the permission store reads through several connections at once
    return f"sqlite+aiosqlite:///{(tmp_path / 'access.db').as_posix()}"


@pytest.fixture
async def engine(db_url):
    engine = create_async_engine(db_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def seeded(session_factory):
    """Database with the permission catalog and built-in roles."""
    async with session_factory() as session:
        await seed_catalog(session)
    return session_factory

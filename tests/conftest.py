import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from tests.models import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


class RecordingSession:
    """Forwards to a real session and remembers what was executed."""

    def __init__(self, session, dialect=None):
        self._session = session
        self._dialect = dialect
        self.statements = []
        self.batches = []

    @property
    def bind(self):
        if self._dialect is None:
            return self._session.bind
        return type("Bind", (), {"dialect": type("Dialect", (), {"name": self._dialect})})()

    async def execute(self, statement, params=None):
        self.statements.append(statement)
        if isinstance(params, list):
            self.batches.append(len(params))
        return await self._session.execute(statement, params)


@pytest.fixture
def recorder(session):
    return RecordingSession(session)

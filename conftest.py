import os
import tempfile

# Настройки читаются при импорте kanban_api, поэтому окружение задаем до него
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RUN_MIGRATIONS", "False")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="kanban_api_logs_"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from kanban_api.db.models import Base
from kanban_api.models import Board, TaskList, User


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(db):
    """owner, member, outsider (не на доске), guest (не на доске)"""
    owner = User(username="alice", email="alice@example.com")
    member = User(username="bob", email="bob@example.com")
    outsider = User(username="carol", email="carol@example.com")
    guest = User(username="dave", email="Dave@Example.com")
    db.add_all([owner, member, outsider, guest])
    await db.commit()
    return {"owner": owner, "member": member, "outsider": outsider, "guest": guest}


@pytest_asyncio.fixture
async def board(db, users):
    """Доска alice с участником bob и двумя списками: To Do (0) и Done (1)"""
    board = Board(title="Roadmap", description="", owner_id=users["owner"].id, members=[users["member"]])
    db.add(board)
    await db.commit()

    todo = TaskList(title="To Do", board_id=board.id, order=0)
    done = TaskList(title="Done", board_id=board.id, order=1)
    db.add_all([todo, done])
    await db.commit()
    return {"board": board, "todo": todo, "done": done}


@pytest.fixture
def owner_id(users):
    return users["owner"].id


@pytest.fixture
def member_id(users):
    return users["member"].id


@pytest.fixture
def outsider_id(users):
    return users["outsider"].id

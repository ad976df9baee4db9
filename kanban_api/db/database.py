from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import NullPool

from kanban_api.core import get_settings

settings = get_settings()

# NullPool: соединение открывается на запрос, пул держит сам PostgreSQL/pgbouncer
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, poolclass=NullPool)

# expire_on_commit=False: после commit объекты остаются читаемыми без ленивой подгрузки
async_session_factory = async_sessionmaker(engine, autoflush=False, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Сессия на время запроса, commit или rollback по итогам обработчика"""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Создает недостающие таблицы (после миграций Alembic это no-op)"""
    from kanban_api.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

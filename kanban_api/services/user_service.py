from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from kanban_api.models.user import User


class UserService:
    """Read access to users (accounts are managed by the auth service)"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        user_id: int
    ) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_email(
        db: AsyncSession,
        email: str
    ) -> Optional[User]:
        query = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await db.execute(query)
        return result.scalars().first()

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from kanban_api.models.user import User
from kanban_api.core import get_settings

settings = get_settings()


class SecurityService:
    """Bearer token verification.

    Tokens are issued by the upstream auth service with the same secret;
    ``create_access_token`` exists for that service and for tests.
    """

    @staticmethod
    def create_access_token(
        user_id: int,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token for a user id"""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode = {
            "sub": str(user_id),
            "exp": datetime.utcnow() + expires_delta,
            "type": "access",
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """Verify a JWT token and return its payload if valid"""
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except JWTError:
            return None

        if payload.get("type") != token_type:
            return None

        return payload

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_current_user(
        db: AsyncSession,
        token: str
    ) -> Optional[User]:
        """Get the current user from a JWT token"""
        payload = SecurityService.verify_token(token)
        if not payload:
            return None

        user_id = payload.get("sub")
        if user_id is None or not str(user_id).isdigit():
            return None

        return await SecurityService.get_user_by_id(db, int(user_id))

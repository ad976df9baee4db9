from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.db.database import get_async_session
from kanban_api.services.security_service import SecurityService
from kanban_api.models.user import User

# Tokens are issued by the upstream auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_session)
) -> User:
    """
    Resolve the acting user from the bearer token

    Raises:
        HTTPException: 401 if the token is invalid, the user is unknown or inactive
    """
    user = await SecurityService.get_current_user(db, token)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

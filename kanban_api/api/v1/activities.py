from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.core import get_settings
from kanban_api.db.database import get_async_session
from kanban_api.api.dependencies.auth import get_current_user
from kanban_api.models.user import User
from kanban_api.schemas.common import ApiListResponse
from kanban_api.schemas.activity import ActivityResponse
from kanban_api.services.activity_service import ActivityService
from kanban_api.services.membership_service import MembershipService

settings = get_settings()

router = APIRouter(tags=["activities"])


@router.get("/boards/{board_id}/activities", response_model=ApiListResponse[List[ActivityResponse]])
async def get_activities(
    board_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.ACTIVITY_PAGE_SIZE, ge=1, le=settings.ACTIVITY_PAGE_MAX),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Activity feed of a board, newest first"""
    await MembershipService.ensure_board_access(db, board_id, current_user.id)
    activities = await ActivityService.get_by_board(db, board_id, skip=skip, limit=limit)
    return {"success": True, "count": len(activities), "data": activities}

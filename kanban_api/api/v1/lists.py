from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.db.database import get_async_session
from kanban_api.api.dependencies.auth import get_current_user
from kanban_api.models.user import User
from kanban_api.schemas.common import ApiListResponse, ApiResponse
from kanban_api.schemas.list import (
    ListCreate,
    ListResponse,
    ListUpdate,
    ListReorder
)
from kanban_api.services.list_service import ListService

# /boards/{board_id}/lists and /lists/{list_id} live side by side
router = APIRouter(tags=["lists"])


@router.put("/boards/{board_id}/lists/reorder", response_model=ApiListResponse[List[ListResponse]])
async def reorder_lists(
    board_id: int,
    reorder: ListReorder,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Apply new order values to lists of a board (best-effort, not atomic)"""
    lists = await ListService.reorder(
        db=db,
        board_id=board_id,
        user_id=current_user.id,
        items=[item.model_dump() for item in reorder.lists]
    )
    return {"success": True, "count": len(lists), "data": lists}


@router.get("/boards/{board_id}/lists", response_model=ApiListResponse[List[ListResponse]])
async def get_lists(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get all lists of a board sorted by order"""
    lists = await ListService.get_for_board(db=db, board_id=board_id, user_id=current_user.id)
    return {"success": True, "count": len(lists), "data": lists}


@router.post(
    "/boards/{board_id}/lists",
    response_model=ApiResponse[ListResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_list(
    board_id: int,
    list_create: ListCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a list at the end of the board"""
    task_list = await ListService.create(
        db=db,
        board_id=board_id,
        user_id=current_user.id,
        title=list_create.title
    )
    return {"success": True, "data": task_list}


@router.put("/lists/{list_id}", response_model=ApiResponse[ListResponse])
async def update_list(
    list_id: int,
    list_update: ListUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    task_list = await ListService.update(
        db=db,
        list_id=list_id,
        user_id=current_user.id,
        title=list_update.title,
        order=list_update.order
    )
    return {"success": True, "data": task_list}


@router.delete("/lists/{list_id}")
async def delete_list(
    list_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a list and every task in it"""
    await ListService.delete(db=db, list_id=list_id, user_id=current_user.id)
    return {"success": True, "data": {}}

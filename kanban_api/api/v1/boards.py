from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.db.database import get_async_session
from kanban_api.api.dependencies.auth import get_current_user
from kanban_api.models.user import User
from kanban_api.schemas.common import ApiListResponse, ApiResponse
from kanban_api.schemas.board import (
    BoardCreate,
    BoardResponse,
    BoardUpdate,
    BoardMemberAdd
)
from kanban_api.services.board_service import BoardService

router = APIRouter(
    prefix="/boards",
    tags=["boards"],
)


@router.get("", response_model=ApiListResponse[List[BoardResponse]])
async def get_boards(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get all boards the current user owns or is a member of"""
    boards = await BoardService.get_boards_by_user(db=db, user_id=current_user.id)
    return {"success": True, "count": len(boards), "data": boards}


@router.post("", response_model=ApiResponse[BoardResponse], status_code=status.HTTP_201_CREATED)
async def create_board(
    board_create: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a new board owned by the current user"""
    board = await BoardService.create(
        db=db,
        title=board_create.title,
        description=board_create.description,
        owner_id=current_user.id,
    )
    return {"success": True, "data": board}


@router.get("/{board_id}", response_model=ApiResponse[BoardResponse])
async def get_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a board (owner and members)"""
    board = await BoardService.get(db=db, board_id=board_id, user_id=current_user.id)
    return {"success": True, "data": board}


@router.put("/{board_id}", response_model=ApiResponse[BoardResponse])
async def update_board(
    board_id: int,
    board_update: BoardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Update a board (owner only)"""
    board = await BoardService.update(
        db=db,
        board_id=board_id,
        user_id=current_user.id,
        title=board_update.title,
        description=board_update.description
    )
    return {"success": True, "data": board}


@router.delete("/{board_id}")
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a board with all its lists, tasks and activities (owner only)"""
    await BoardService.delete(db=db, board_id=board_id, user_id=current_user.id)
    return {"success": True, "data": {}}


@router.put("/{board_id}/members", response_model=ApiResponse[BoardResponse])
async def add_member(
    board_id: int,
    member: BoardMemberAdd,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Add a member by email (owner only)"""
    board = await BoardService.add_member(
        db=db,
        board_id=board_id,
        user_id=current_user.id,
        email=member.email
    )
    return {"success": True, "data": board}


@router.delete("/{board_id}/members/{member_id}", response_model=ApiResponse[BoardResponse])
async def remove_member(
    board_id: int,
    member_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Remove a member (owner only)"""
    board = await BoardService.remove_member(
        db=db,
        board_id=board_id,
        user_id=current_user.id,
        member_id=member_id
    )
    return {"success": True, "data": board}

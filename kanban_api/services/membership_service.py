from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from kanban_api.core.exceptions import ForbiddenError, NotFoundError
from kanban_api.logs import debug_logger
from kanban_api.models.board import Board
from kanban_api.models.list import TaskList
from kanban_api.models.task import Task


def is_member(board: Board, user_id: int) -> bool:
    """Owner or member of the board"""
    return board.has_member(user_id)


class MembershipService:
    """Board access checks.

    Membership is re-read from the database on every call, nothing is cached
    between requests.
    """

    @staticmethod
    async def _load_board(db: AsyncSession, board_id: int) -> Board:
        # populate_existing: не доверяем объекту, уже лежащему в сессии
        query = (
            select(Board)
            .where(Board.id == board_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        board = result.scalars().first()
        if board is None:
            raise NotFoundError("Board", board_id)
        return board

    @staticmethod
    async def ensure_board_access(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> Board:
        board = await MembershipService._load_board(db, board_id)
        if not is_member(board, user_id):
            debug_logger.warning(f"Пользователь {user_id} не имеет доступа к доске {board_id}")
            raise ForbiddenError(f"User {user_id} is not authorized to access this board")
        return board

    @staticmethod
    async def ensure_board_owner(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> Board:
        board = await MembershipService._load_board(db, board_id)
        if board.owner_id != user_id:
            debug_logger.warning(f"Пользователь {user_id} не является владельцем доски {board_id}")
            raise ForbiddenError("Only the board owner can perform this action")
        return board

    @staticmethod
    async def ensure_list_access(
        db: AsyncSession,
        list_id: int,
        user_id: int
    ) -> Tuple[TaskList, Board]:
        result = await db.execute(select(TaskList).where(TaskList.id == list_id))
        task_list = result.scalars().first()
        if task_list is None:
            raise NotFoundError("List", list_id)
        board = await MembershipService.ensure_board_access(db, task_list.board_id, user_id)
        return task_list, board

    @staticmethod
    async def ensure_task_access(
        db: AsyncSession,
        task_id: int,
        user_id: int
    ) -> Tuple[Task, Board]:
        result = await db.execute(select(Task).where(Task.id == task_id))
        task = result.scalars().first()
        if task is None:
            raise NotFoundError("Task", task_id)
        board = await MembershipService.ensure_board_access(db, task.board_id, user_id)
        return task, board

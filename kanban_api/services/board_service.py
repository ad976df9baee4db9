from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_

from kanban_api.core.exceptions import InvalidOperationError, NotFoundError
from kanban_api.logs import debug_logger, log_function
from kanban_api.models.activity import Activity
from kanban_api.models.board import Board, board_members
from kanban_api.models.list import TaskList
from kanban_api.models.task import Task, task_assignees
from kanban_api.services.activity_service import (
    ActivityService,
    BoardCreated,
    BoardDescriptionChanged,
    BoardRenamed,
    MemberAdded,
    MemberRemoved,
)
from kanban_api.services.membership_service import MembershipService
from kanban_api.services.user_service import UserService
from kanban_api.validation import validate_board, validate_description, validate_title


class BoardService:
    """Board operations: CRUD and membership"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        board_id: int
    ) -> Optional[Board]:
        query = (
            select(Board)
            .where(Board.id == board_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_boards_by_user(
        db: AsyncSession,
        user_id: int
    ) -> List[Board]:
        """Boards the user owns or is a member of"""
        member_of = select(board_members.c.board_id).where(board_members.c.user_id == user_id)
        query = (
            select(Board)
            .where(or_(Board.owner_id == user_id, Board.id.in_(member_of)))
            .order_by(Board.id)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        title: str,
        owner_id: int,
        description: Optional[str] = None
    ) -> Board:
        title, description = validate_board(title, description)
        board = Board(title=title, description=description, owner_id=owner_id, members=[])
        db.add(board)
        await db.commit()
        board_id = board.id
        debug_logger.info(f"Создана доска {board_id} пользователем {owner_id}")

        await ActivityService.record(db, BoardCreated(board_id=board_id), owner_id)
        return await BoardService.get_by_id(db, board_id)

    @staticmethod
    async def get(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> Board:
        return await MembershipService.ensure_board_access(db, board_id, user_id)

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None
    ) -> Board:
        """Update title/description (owner only)"""
        board = await MembershipService.ensure_board_owner(db, board_id, user_id)

        events = []
        if title is not None:
            title = validate_title(title, "Board")
            if title != board.title:
                events.append(BoardRenamed(board_id=board_id, old_title=board.title, new_title=title))
                board.title = title
        if description is not None:
            description = validate_description(description, "Board")
            if description != (board.description or ""):
                events.append(BoardDescriptionChanged(board_id=board_id))
                board.description = description

        if events:
            await db.commit()
            await ActivityService.record_many(db, events, user_id)
        return await BoardService.get_by_id(db, board_id)

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> None:
        """Delete a board with its lists, tasks, memberships and activities (owner only)"""
        await MembershipService.ensure_board_owner(db, board_id, user_id)

        task_ids = select(Task.id).where(Task.board_id == board_id)
        await db.execute(delete(task_assignees).where(task_assignees.c.task_id.in_(task_ids)))
        await db.execute(delete(Activity).where(Activity.board_id == board_id))
        await db.execute(delete(Task).where(Task.board_id == board_id))
        await db.execute(delete(TaskList).where(TaskList.board_id == board_id))
        await db.execute(delete(board_members).where(board_members.c.board_id == board_id))
        await db.execute(delete(Board).where(Board.id == board_id))
        await db.commit()
        db.expunge_all()

        debug_logger.info(f"Доска {board_id} удалена вместе со списками, задачами и активностями")

    @staticmethod
    @log_function()
    async def add_member(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        email: str
    ) -> Board:
        """Invite a user by email (owner only)"""
        board = await MembershipService.ensure_board_owner(db, board_id, user_id)

        user = await UserService.get_by_email(db, email)
        if not user:
            raise NotFoundError(f"User with email {email}")

        if board.has_member(user.id):
            raise InvalidOperationError(f"User with email {email} is already a member of this board")

        board.members.append(user)
        await db.commit()
        debug_logger.info(f"Пользователь {user.id} добавлен на доску {board_id}")

        await ActivityService.record(db, MemberAdded(board_id=board_id, username=user.username), user_id)
        return await BoardService.get_by_id(db, board_id)

    @staticmethod
    @log_function()
    async def remove_member(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        member_id: int
    ) -> Board:
        """Remove a member (owner only).

        Removing someone who is not a member changes nothing. The removed
        member is also unassigned from every task of the board.
        """
        board = await MembershipService.ensure_board_owner(db, board_id, user_id)

        user = await UserService.get_by_id(db, member_id)
        if not user:
            raise NotFoundError("User", member_id)

        if user.id not in board.member_ids:
            debug_logger.debug(f"Пользователь {member_id} не является участником доски {board_id}")
            return board

        board.members = [member for member in board.members if member.id != member_id]
        task_ids = select(Task.id).where(Task.board_id == board_id)
        await db.execute(
            delete(task_assignees).where(
                task_assignees.c.user_id == member_id,
                task_assignees.c.task_id.in_(task_ids)
            )
        )
        await db.commit()
        debug_logger.info(f"Пользователь {member_id} удален с доски {board_id}")

        await ActivityService.record(db, MemberRemoved(board_id=board_id, username=user.username), user_id)
        return await BoardService.get_by_id(db, board_id)

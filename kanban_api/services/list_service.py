from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from kanban_api.logs import debug_logger, log_function
from kanban_api.models.activity import Activity
from kanban_api.models.list import TaskList
from kanban_api.models.task import Task, task_assignees
from kanban_api.services.activity_service import (
    ActivityService,
    ListCreated,
    ListDeleted,
    ListMoved,
    ListRenamed,
    ListsReordered,
)
from kanban_api.services.membership_service import MembershipService
from kanban_api.services.ordering_service import OrderingService
from kanban_api.validation import validate_list, validate_order


class ListService:
    """Operations on the lists (columns) of a board"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        list_id: int
    ) -> Optional[TaskList]:
        query = (
            select(TaskList)
            .where(TaskList.id == list_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_board_id(
        db: AsyncSession,
        board_id: int
    ) -> List[TaskList]:
        query = (
            select(TaskList)
            .where(TaskList.board_id == board_id)
            .order_by(TaskList.order, TaskList.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_board(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> List[TaskList]:
        await MembershipService.ensure_board_access(db, board_id, user_id)
        return await ListService.get_by_board_id(db, board_id)

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        title: str
    ) -> TaskList:
        """Create a list at the end of the board"""
        await MembershipService.ensure_board_access(db, board_id, user_id)
        title = validate_list(title)

        order = await OrderingService.next_list_order(db, board_id)
        task_list = TaskList(title=title, board_id=board_id, order=order)
        db.add(task_list)
        await db.commit()
        list_id = task_list.id
        debug_logger.info(f"Создан список {list_id} на доске {board_id} с порядком {order}")

        await ActivityService.record(
            db, ListCreated(board_id=board_id, list_ref=list_id, title=title), user_id
        )
        return await ListService.get_by_id(db, list_id)

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        list_id: int,
        user_id: int,
        title: Optional[str] = None,
        order: Optional[int] = None
    ) -> TaskList:
        task_list, board = await MembershipService.ensure_list_access(db, list_id, user_id)

        events = []
        if title is not None:
            title = validate_list(title)
            if title != task_list.title:
                events.append(ListRenamed(
                    board_id=board.id, list_ref=list_id, title=title, old_title=task_list.title
                ))
                task_list.title = title
        if order is not None:
            order = validate_order(order)
            if order != task_list.order:
                events.append(ListMoved(
                    board_id=board.id, list_ref=list_id, title=task_list.title, order=order
                ))
                task_list.order = order

        if events:
            await db.commit()
            await ActivityService.record_many(db, events, user_id)
        return await ListService.get_by_id(db, list_id)

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        list_id: int,
        user_id: int
    ) -> None:
        """Delete a list with its tasks and the activities scoped to it"""
        task_list, board = await MembershipService.ensure_list_access(db, list_id, user_id)
        board_id, title = board.id, task_list.title

        task_ids = select(Task.id).where(Task.list_id == list_id)
        await db.execute(delete(task_assignees).where(task_assignees.c.task_id.in_(task_ids)))
        await db.execute(delete(Activity).where(Activity.list_id == list_id))
        await db.execute(delete(Task).where(Task.list_id == list_id))
        await db.execute(delete(TaskList).where(TaskList.id == list_id))
        await db.commit()
        debug_logger.info(f"Список {list_id} удален вместе с задачами")

        await ActivityService.record(db, ListDeleted(board_id=board_id, title=title), user_id)

    @staticmethod
    @log_function()
    async def reorder(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        items: List[Dict[str, int]]
    ) -> List[TaskList]:
        await MembershipService.ensure_board_access(db, board_id, user_id)
        applied = await OrderingService.reorder_lists(db, board_id, items)
        if applied:
            await ActivityService.record(db, ListsReordered(board_id=board_id), user_id)
        return await ListService.get_by_board_id(db, board_id)

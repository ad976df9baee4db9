"""
Ordering of lists on a board and tasks inside a list

``order`` is a sort key, not a dense rank: values only need to keep the
relative sequence, gaps are fine, and siblings are never renumbered. Reads sort
by (order, id), so equal keys fall back to insertion order.

Appending is read-then-write without locking, two concurrent appends to the
same list can end up with the same order value.
"""
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from kanban_api.core.exceptions import InvalidOperationError
from kanban_api.logs import debug_logger, log_function
from kanban_api.models.list import TaskList
from kanban_api.models.task import Task
from kanban_api.validation import ORDER_MAX, validate_order


class OrderingService:

    @staticmethod
    def _after(max_order: Optional[int]) -> int:
        if max_order is None:
            return 0
        if max_order >= ORDER_MAX:
            raise InvalidOperationError("Cannot append: the last item already has the highest order value")
        return max_order + 1

    @staticmethod
    async def next_task_order(db: AsyncSession, list_id: int) -> int:
        """Order value that puts a new task at the end of the list"""
        query = select(func.max(Task.order)).where(Task.list_id == list_id)
        result = await db.execute(query)
        return OrderingService._after(result.scalar())

    @staticmethod
    async def next_list_order(db: AsyncSession, board_id: int) -> int:
        """Order value that puts a new list at the end of the board"""
        query = select(func.max(TaskList.order)).where(TaskList.board_id == board_id)
        result = await db.execute(query)
        return OrderingService._after(result.scalar())

    @staticmethod
    def apply_move(task: Task, destination: TaskList, order: int) -> None:
        """Point the task at the destination list and order.

        The destination must be on the task's board. board_id is taken from
        the destination list, never from the caller.
        """
        if destination.board_id != task.board_id:
            raise InvalidOperationError("Cannot move task to a list in a different board")
        order = validate_order(order)
        task.list_id = destination.id
        task.board_id = destination.board_id
        task.order = order

    @staticmethod
    @log_function()
    async def reorder_lists(
        db: AsyncSession,
        board_id: int,
        items: List[Dict[str, int]]
    ) -> int:
        """Apply {id, order} pairs to the lists of a board.

        Pairs are written one at a time, each in its own commit; pairs that
        already hold the requested order are skipped. The payload is checked up
        front (non-empty, no duplicate ids, every id belongs to the board), but
        a persistence failure halfway leaves the earlier pairs applied. Whether
        the orders form a permutation is not checked.

        Returns the number of lists whose order changed.
        """
        if not items:
            raise InvalidOperationError("Please provide a valid lists array")

        list_ids = [item["id"] for item in items]
        if len(set(list_ids)) != len(list_ids):
            raise InvalidOperationError("Each list may appear only once in a reorder request")

        for item in items:
            validate_order(item["order"])

        query = select(TaskList.id, TaskList.order).where(
            TaskList.board_id == board_id, TaskList.id.in_(list_ids)
        )
        result = await db.execute(query)
        current = {list_id: order for list_id, order in result.all()}
        unknown = [list_id for list_id in list_ids if list_id not in current]
        if unknown:
            raise InvalidOperationError(f"Lists {unknown} do not belong to board {board_id}")

        applied = 0
        for item in items:
            if current[item["id"]] == item["order"]:
                continue
            stmt = update(TaskList).where(
                TaskList.id == item["id"],
                TaskList.board_id == board_id
            ).values(order=item["order"], updated_at=datetime.utcnow())
            await db.execute(stmt)
            await db.commit()
            applied += 1

        debug_logger.info(f"Порядок списков на доске {board_id} обновлен ({applied} шт.)")
        return applied

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from kanban_api.core.exceptions import InvalidOperationError, NotFoundError
from kanban_api.logs import debug_logger, log_function
from kanban_api.models.list import TaskList
from kanban_api.models.task import Task, task_assignees
from kanban_api.services.activity_service import (
    ActivityService,
    TaskAssigned,
    TaskCompleted,
    TaskCreated,
    TaskDeleted,
    TaskMoved,
    TaskRenamed,
    TaskReopened,
    TaskUnassigned,
)
from kanban_api.services.membership_service import MembershipService
from kanban_api.services.ordering_service import OrderingService
from kanban_api.services.user_service import UserService
from kanban_api.validation import validate_description, validate_labels, validate_task, validate_title

# Поле не передано в запросе (None означает "очистить")
UNSET: Any = object()


class TaskService:
    """Operations on tasks (cards)"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        task_id: int
    ) -> Optional[Task]:
        query = (
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_list_id(
        db: AsyncSession,
        list_id: int
    ) -> List[Task]:
        """Tasks of a list sorted by order, ties by insertion"""
        query = (
            select(Task)
            .where(Task.list_id == list_id)
            .order_by(Task.order, Task.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_list(
        db: AsyncSession,
        list_id: int,
        user_id: int
    ) -> List[Task]:
        await MembershipService.ensure_list_access(db, list_id, user_id)
        return await TaskService.get_by_list_id(db, list_id)

    @staticmethod
    async def get(
        db: AsyncSession,
        task_id: int,
        user_id: int
    ) -> Task:
        task, _ = await MembershipService.ensure_task_access(db, task_id, user_id)
        return task

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        list_id: int,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        labels: Optional[List[Dict[str, Any]]] = None
    ) -> Task:
        """Create a task at the end of the list"""
        task_list, board = await MembershipService.ensure_list_access(db, list_id, user_id)
        title, description, labels = validate_task(title, description, labels)

        order = await OrderingService.next_task_order(db, list_id)
        task = Task(
            title=title,
            description=description or "",
            list_id=list_id,
            board_id=task_list.board_id,
            order=order,
            due_date=due_date,
            labels=labels or [],
            created_by=user_id,
            completed=False,
            assignees=[],
        )
        db.add(task)
        await db.commit()
        task_id = task.id
        debug_logger.info(f"Создана задача {task_id} в списке {list_id} с порядком {order}")

        await ActivityService.record(db, TaskCreated(
            board_id=board.id, list_ref=list_id, task_ref=task_id,
            title=title, list_title=task_list.title,
        ), user_id)
        return await TaskService.get_by_id(db, task_id)

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        task_id: int,
        user_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        due_date: Optional[datetime] = UNSET,
        labels: Optional[List[Dict[str, Any]]] = None,
        completed: Optional[bool] = None
    ) -> Task:
        """Update task fields.

        Produces one activity for a title change and one for a completion
        flip; anything else (including a no-op rename) is recorded silently.
        """
        task, board = await MembershipService.ensure_task_access(db, task_id, user_id)

        # Старые значения нужны для текста активности, после записи их уже не получить
        old_title = task.title
        old_completed = task.completed

        events = []
        if title is not None:
            title = validate_title(title, "Task")
            if title != old_title:
                task.title = title
                events.append(TaskRenamed(
                    board_id=board.id, list_ref=task.list_id, task_ref=task_id,
                    title=title, old_title=old_title,
                ))
        if description is not None:
            task.description = validate_description(description, "Task")
        if due_date is not UNSET:
            task.due_date = due_date
        if labels is not None:
            task.labels = validate_labels(labels)
        if completed is not None and completed != old_completed:
            task.completed = completed
            event_cls = TaskCompleted if completed else TaskReopened
            events.append(event_cls(
                board_id=board.id, list_ref=task.list_id, task_ref=task_id, title=task.title,
            ))

        await db.commit()
        await ActivityService.record_many(db, events, user_id)
        return await TaskService.get_by_id(db, task_id)

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        task_id: int,
        user_id: int
    ) -> None:
        task, board = await MembershipService.ensure_task_access(db, task_id, user_id)
        list_id, title = task.list_id, task.title

        await db.execute(delete(task_assignees).where(task_assignees.c.task_id == task_id))
        await db.execute(delete(Task).where(Task.id == task_id))
        await db.commit()
        debug_logger.info(f"Задача {task_id} удалена")

        await ActivityService.record(
            db, TaskDeleted(board_id=board.id, list_ref=list_id, title=title), user_id
        )

    @staticmethod
    @log_function()
    async def move(
        db: AsyncSession,
        task_id: int,
        user_id: int,
        destination_list_id: int,
        order: int
    ) -> Task:
        """Move a task to a list of the same board at the given order.

        The order is written as given, siblings keep their values. A move
        activity is recorded only when the list changes.
        """
        task, board = await MembershipService.ensure_task_access(db, task_id, user_id)

        result = await db.execute(select(TaskList).where(TaskList.id == destination_list_id))
        destination = result.scalars().first()
        if destination is None:
            raise NotFoundError("Destination list", destination_list_id)

        source_list_id = task.list_id
        source = await db.get(TaskList, source_list_id)
        source_title = source.title if source else ""

        try:
            OrderingService.apply_move(task, destination, order)
        except InvalidOperationError:
            debug_logger.warning(
                f"Отклонено перемещение задачи {task_id} в список {destination_list_id} другой доски"
            )
            raise
        await db.commit()
        debug_logger.info(
            f"Задача {task_id} перемещена из списка {source_list_id} в список {destination.id} "
            f"на позицию {task.order}"
        )

        if source_list_id != destination.id:
            await ActivityService.record(db, TaskMoved(
                board_id=board.id, list_ref=destination.id, task_ref=task_id, title=task.title,
                from_list_title=source_title, to_list_title=destination.title,
            ), user_id)
        return await TaskService.get_by_id(db, task_id)

    @staticmethod
    @log_function()
    async def assign_user(
        db: AsyncSession,
        task_id: int,
        user_id: int,
        assignee_id: int
    ) -> Task:
        """Assign a board member to a task"""
        task, board = await MembershipService.ensure_task_access(db, task_id, user_id)

        assignee = await UserService.get_by_id(db, assignee_id)
        if not assignee:
            raise NotFoundError("User", assignee_id)

        if not board.has_member(assignee_id):
            raise InvalidOperationError("User is not a member of this board")

        if assignee_id in task.assigned_to:
            raise InvalidOperationError("User is already assigned to this task")

        task.assignees.append(assignee)
        await db.commit()
        debug_logger.info(f"Пользователь {assignee_id} назначен на задачу {task_id}")

        await ActivityService.record(db, TaskAssigned(
            board_id=board.id, list_ref=task.list_id, task_ref=task_id,
            title=task.title, username=assignee.username,
        ), user_id)
        return await TaskService.get_by_id(db, task_id)

    @staticmethod
    @log_function()
    async def unassign_user(
        db: AsyncSession,
        task_id: int,
        user_id: int,
        assignee_id: int
    ) -> Task:
        """Remove an assignee; removing someone not assigned is a no-op"""
        task, board = await MembershipService.ensure_task_access(db, task_id, user_id)

        removed = [user for user in task.assignees if user.id == assignee_id]
        if not removed:
            debug_logger.debug(f"Пользователь {assignee_id} не был назначен на задачу {task_id}")
            return task

        task.assignees = [user for user in task.assignees if user.id != assignee_id]
        await db.commit()
        debug_logger.info(f"Пользователь {assignee_id} снят с задачи {task_id}")

        await ActivityService.record(db, TaskUnassigned(
            board_id=board.id, list_ref=task.list_id, task_ref=task_id,
            title=task.title, username=removed[0].username,
        ), user_id)
        return await TaskService.get_by_id(db, task_id)

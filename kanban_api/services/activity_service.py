"""
Activity feed: event kinds, text rendering and persistence

Every mutating operation describes what happened as one of the event
dataclasses below. ``render_activity`` turns an event into the stored
(entity type, action type, text) triple; ``ActivityService.record`` writes it
after the primary change has been committed.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.logs import debug_logger
from kanban_api.models.activity import Activity, ActivityAction, ActivityEntity


@dataclass(frozen=True)
class ActivityEvent:
    board_id: int

    @property
    def list_id(self) -> Optional[int]:
        return None

    @property
    def task_id(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class BoardCreated(ActivityEvent):
    pass


@dataclass(frozen=True)
class BoardRenamed(ActivityEvent):
    old_title: str
    new_title: str


@dataclass(frozen=True)
class BoardDescriptionChanged(ActivityEvent):
    pass


@dataclass(frozen=True)
class MemberAdded(ActivityEvent):
    username: str


@dataclass(frozen=True)
class MemberRemoved(ActivityEvent):
    username: str


@dataclass(frozen=True)
class ListsReordered(ActivityEvent):
    pass


@dataclass(frozen=True)
class _ListEvent(ActivityEvent):
    list_ref: int
    title: str

    @property
    def list_id(self) -> Optional[int]:
        return self.list_ref


@dataclass(frozen=True)
class ListCreated(_ListEvent):
    pass


@dataclass(frozen=True)
class ListRenamed(_ListEvent):
    old_title: str


@dataclass(frozen=True)
class ListMoved(_ListEvent):
    order: int


@dataclass(frozen=True)
class ListDeleted(ActivityEvent):
    # The list row is gone, so the activity is scoped to the board only
    title: str


@dataclass(frozen=True)
class _TaskEvent(ActivityEvent):
    list_ref: int
    task_ref: int
    title: str

    @property
    def list_id(self) -> Optional[int]:
        return self.list_ref

    @property
    def task_id(self) -> Optional[int]:
        return self.task_ref


@dataclass(frozen=True)
class TaskCreated(_TaskEvent):
    list_title: str


@dataclass(frozen=True)
class TaskRenamed(_TaskEvent):
    old_title: str


@dataclass(frozen=True)
class TaskCompleted(_TaskEvent):
    pass


@dataclass(frozen=True)
class TaskReopened(_TaskEvent):
    pass


@dataclass(frozen=True)
class TaskMoved(_TaskEvent):
    """list_ref is the destination list"""
    from_list_title: str
    to_list_title: str


@dataclass(frozen=True)
class TaskAssigned(_TaskEvent):
    username: str


@dataclass(frozen=True)
class TaskUnassigned(_TaskEvent):
    username: str


@dataclass(frozen=True)
class TaskDeleted(ActivityEvent):
    list_ref: int
    title: str

    @property
    def list_id(self) -> Optional[int]:
        return self.list_ref


Rendered = Tuple[ActivityEntity, ActivityAction, str]

_RENDERERS: Dict[Type[ActivityEvent], Callable[..., Rendered]] = {
    BoardCreated: lambda e: (ActivityEntity.BOARD, ActivityAction.CREATE, "created this board"),
    BoardRenamed: lambda e: (
        ActivityEntity.BOARD, ActivityAction.UPDATE,
        f'renamed this board from "{e.old_title}" to "{e.new_title}"',
    ),
    BoardDescriptionChanged: lambda e: (
        ActivityEntity.BOARD, ActivityAction.UPDATE, "updated the board description",
    ),
    MemberAdded: lambda e: (
        ActivityEntity.BOARD, ActivityAction.ASSIGN, f"added {e.username} to this board",
    ),
    MemberRemoved: lambda e: (
        ActivityEntity.BOARD, ActivityAction.UPDATE, f"removed {e.username} from this board",
    ),
    ListsReordered: lambda e: (
        ActivityEntity.BOARD, ActivityAction.MOVE, "reordered lists on this board",
    ),
    ListCreated: lambda e: (
        ActivityEntity.LIST, ActivityAction.CREATE, f'added list "{e.title}" to this board',
    ),
    ListRenamed: lambda e: (
        ActivityEntity.LIST, ActivityAction.UPDATE,
        f'renamed list "{e.old_title}" to "{e.title}"',
    ),
    ListMoved: lambda e: (
        ActivityEntity.LIST, ActivityAction.MOVE,
        f'moved list "{e.title}" to position {e.order}',
    ),
    ListDeleted: lambda e: (
        ActivityEntity.LIST, ActivityAction.DELETE, f'deleted list "{e.title}"',
    ),
    TaskCreated: lambda e: (
        ActivityEntity.CARD, ActivityAction.CREATE,
        f'added task "{e.title}" to "{e.list_title}"',
    ),
    TaskRenamed: lambda e: (
        ActivityEntity.CARD, ActivityAction.UPDATE,
        f'renamed task "{e.old_title}" to "{e.title}"',
    ),
    TaskCompleted: lambda e: (
        ActivityEntity.CARD, ActivityAction.COMPLETE, f'marked task "{e.title}" as complete',
    ),
    TaskReopened: lambda e: (
        ActivityEntity.CARD, ActivityAction.UPDATE, f'marked task "{e.title}" as incomplete',
    ),
    TaskMoved: lambda e: (
        ActivityEntity.CARD, ActivityAction.MOVE,
        f'moved task "{e.title}" from list "{e.from_list_title}" to "{e.to_list_title}"',
    ),
    TaskAssigned: lambda e: (
        ActivityEntity.CARD, ActivityAction.ASSIGN,
        f'assigned {e.username} to task "{e.title}"',
    ),
    TaskUnassigned: lambda e: (
        ActivityEntity.CARD, ActivityAction.UPDATE,
        f'removed {e.username} from task "{e.title}"',
    ),
    TaskDeleted: lambda e: (
        ActivityEntity.CARD, ActivityAction.DELETE, f'deleted task "{e.title}"',
    ),
}


def render_activity(event: ActivityEvent) -> Rendered:
    """Map an event to (entity type, action type, text).

    Raises TypeError for event kinds without a renderer.
    """
    renderer = _RENDERERS.get(type(event))
    if renderer is None:
        raise TypeError(f"No activity renderer for {type(event).__name__}")
    return renderer(event)


class ActivityService:
    """Append-only activity log"""

    @staticmethod
    async def record(
        db: AsyncSession,
        event: ActivityEvent,
        user_id: int
    ) -> Optional[Activity]:
        """Persist an activity for an already committed change.

        A failed write is logged and swallowed: the change it describes has
        already been committed and stays.
        """
        entity_type, action_type, text = render_activity(event)
        activity = Activity(
            text=text,
            entity_type=entity_type,
            action_type=action_type,
            board_id=event.board_id,
            list_id=event.list_id,
            task_id=event.task_id,
            user_id=user_id,
        )
        try:
            db.add(activity)
            await db.commit()
        except Exception as e:
            await db.rollback()
            debug_logger.error(
                f"Не удалось записать активность '{text}' для доски {event.board_id}: {str(e)}"
            )
            return None

        debug_logger.debug(f"Активность на доске {event.board_id}: {text}")
        return activity

    @staticmethod
    async def record_many(
        db: AsyncSession,
        events: List[ActivityEvent],
        user_id: int
    ) -> List[Activity]:
        recorded = []
        for event in events:
            activity = await ActivityService.record(db, event, user_id)
            if activity is not None:
                recorded.append(activity)
        return recorded

    @staticmethod
    async def get_by_board(
        db: AsyncSession,
        board_id: int,
        skip: int = 0,
        limit: int = 50
    ) -> List[Activity]:
        """Board feed, newest first"""
        query = (
            select(Activity)
            .where(Activity.board_id == board_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

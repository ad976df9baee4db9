from datetime import datetime
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text

from kanban_api.db.base import Base


class ActivityEntity(str, enum.Enum):
    BOARD = "board"
    LIST = "list"
    CARD = "card"


class ActivityAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MOVE = "move"
    ASSIGN = "assign"
    COMPLETE = "complete"


class Activity(Base):
    """Запись журнала действий на доске. После создания не изменяется"""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    entity_type = Column(Enum(ActivityEntity), nullable=False)
    action_type = Column(Enum(ActivityAction), nullable=False)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    list_id = Column(Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=True, index=True)
    # Без внешнего ключа: история переживает удаление задачи
    task_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

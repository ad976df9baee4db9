from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table, Text, Boolean, JSON, Index
from sqlalchemy.orm import relationship

from kanban_api.db.base import Base


# Ассоциативная таблица для связи many-to-many между пользователями и задачами
task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
)


class Task(Base):
    """Модель задачи (карточки) для канбан-системы"""

    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_list_order", "list_id", "order"),)

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    list_id = Column(Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False)
    # Денормализация: всегда равно board_id списка, пересчитывается при создании и перемещении
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=0)  # Для сортировки задач внутри списка
    due_date = Column(DateTime, nullable=True)
    labels = Column(JSON, nullable=False, default=list)  # [{"color": ..., "text": ...}]
    completed = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Отношение many-to-many с назначенными пользователями
    assignees = relationship("User", secondary=task_assignees, lazy="selectin")

    @property
    def assigned_to(self) -> list[int]:
        return [user.id for user in self.assignees]

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from kanban_api.db.base import Base


class TaskList(Base):
    """Модель колонки/списка для канбан-системы"""

    __tablename__ = "lists"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    order = Column(Integer, nullable=False, default=0)  # Для сортировки списков на доске
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

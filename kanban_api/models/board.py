from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship

from kanban_api.db.base import Base


# Ассоциативная таблица участников доски (владелец в ней не обязателен)
board_members = Table(
    "board_members",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("board_id", Integer, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True),
)


class Board(Base):
    """Модель доски для канбан-системы"""

    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Отношение many-to-many с участниками доски
    members = relationship("User", secondary=board_members, lazy="selectin")

    @property
    def member_ids(self) -> list[int]:
        return [user.id for user in self.members]

    def has_member(self, user_id: int) -> bool:
        """Owner or invited member"""
        return self.owner_id == user_id or user_id in self.member_ids

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime

from kanban_api.db.base import Base


class User(Base):
    """Пользователь системы (учетные записи выдаются внешним сервисом)"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    avatar = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

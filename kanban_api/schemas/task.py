from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, validator


def _parse_due_date(value):
    if isinstance(value, str) and value.endswith('Z'):
        # Заменяем 'Z' на '+00:00' для правильной обработки UTC
        fixed_value = value.replace('Z', '+00:00')
        # Храним naive datetime в UTC
        return datetime.fromisoformat(fixed_value).replace(tzinfo=None)
    elif isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


class Label(BaseModel):
    color: Optional[str] = None
    text: Optional[str] = None


class TaskCreate(BaseModel):
    """Schema for task creation (always appended at the end of the list)"""
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    labels: List[Label] = []

    @validator('due_date', pre=True)
    def parse_due_date(cls, value):
        return _parse_due_date(value)


class TaskUpdate(BaseModel):
    """Schema for task update; omitted fields are left untouched"""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    labels: Optional[List[Label]] = None
    completed: Optional[bool] = None

    @validator('due_date', pre=True)
    def parse_due_date(cls, value):
        return _parse_due_date(value)


class TaskMove(BaseModel):
    """Schema for moving a task to a list at an explicit order"""
    list_id: int
    order: int


class TaskAssignment(BaseModel):
    """Schema for assigning a user to a task"""
    user_id: int


class TaskResponse(BaseModel):
    """Schema for task response"""
    id: int
    title: str
    description: Optional[str] = None
    list_id: int
    board_id: int
    order: int
    due_date: Optional[datetime] = None
    labels: List[Label] = []
    assigned_to: List[int] = []
    created_by: Optional[int] = None
    completed: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

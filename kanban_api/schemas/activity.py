from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from kanban_api.models.activity import ActivityAction, ActivityEntity


class ActivityResponse(BaseModel):
    """Schema for an activity feed entry"""
    id: int
    text: str
    entity_type: ActivityEntity
    action_type: ActivityAction
    board_id: int
    list_id: Optional[int] = None
    task_id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

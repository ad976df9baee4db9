from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class BoardBase(BaseModel):
    """Base schema for board data"""
    title: str
    description: Optional[str] = None


class BoardCreate(BoardBase):
    """Schema for board creation"""
    pass


class BoardUpdate(BaseModel):
    """Schema for board update"""
    title: Optional[str] = None
    description: Optional[str] = None


class BoardResponse(BoardBase):
    """Schema for board response"""
    id: int
    owner_id: int
    member_ids: List[int] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BoardMemberAdd(BaseModel):
    """Schema for inviting a user to a board by email"""
    email: str

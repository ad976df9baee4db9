from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class ListCreate(BaseModel):
    """Schema for list creation (always appended at the end)"""
    title: str


class ListUpdate(BaseModel):
    """Schema for list update"""
    title: Optional[str] = None
    order: Optional[int] = None


class ListResponse(BaseModel):
    """Schema for list response"""
    id: int
    title: str
    board_id: int
    order: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ListOrderItem(BaseModel):
    id: int
    order: int


class ListReorder(BaseModel):
    """Schema for batch list reorder"""
    lists: List[ListOrderItem]

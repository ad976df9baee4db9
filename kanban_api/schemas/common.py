from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope for a single entity: {success, data}"""
    success: bool = True
    data: T


class ApiListResponse(ApiResponse[T], Generic[T]):
    """Response envelope for collections: {success, count, data}"""
    count: int


class ErrorResponse(BaseModel):
    success: bool = False
    message: str

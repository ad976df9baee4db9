from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.db.database import get_async_session
from kanban_api.api.dependencies.auth import get_current_user
from kanban_api.models.user import User
from kanban_api.schemas.common import ApiListResponse, ApiResponse
from kanban_api.schemas.task import (
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    TaskMove,
    TaskAssignment
)
from kanban_api.services.task_service import TaskService, UNSET

router = APIRouter(tags=["cards"])


@router.get("/lists/{list_id}/cards", response_model=ApiListResponse[List[TaskResponse]])
async def get_tasks(
    list_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get all tasks of a list sorted by order"""
    tasks = await TaskService.get_for_list(db=db, list_id=list_id, user_id=current_user.id)
    return {"success": True, "count": len(tasks), "data": tasks}


@router.post(
    "/lists/{list_id}/cards",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_task(
    list_id: int,
    task_create: TaskCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a task at the end of the list"""
    task = await TaskService.create(
        db=db,
        list_id=list_id,
        user_id=current_user.id,
        title=task_create.title,
        description=task_create.description,
        due_date=task_create.due_date,
        labels=[label.model_dump() for label in task_create.labels]
    )
    return {"success": True, "data": task}


@router.get("/cards/{task_id}", response_model=ApiResponse[TaskResponse])
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    task = await TaskService.get(db=db, task_id=task_id, user_id=current_user.id)
    return {"success": True, "data": task}


@router.put("/cards/{task_id}", response_model=ApiResponse[TaskResponse])
async def update_task(
    task_id: int,
    task_update: TaskUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Update a task; fields missing from the body stay as they are"""
    # due_date: null очищает срок, отсутствие поля ничего не меняет
    due_date = task_update.due_date if "due_date" in task_update.model_fields_set else UNSET
    labels = None
    if task_update.labels is not None:
        labels = [label.model_dump() for label in task_update.labels]

    task = await TaskService.update(
        db=db,
        task_id=task_id,
        user_id=current_user.id,
        title=task_update.title,
        description=task_update.description,
        due_date=due_date,
        labels=labels,
        completed=task_update.completed
    )
    return {"success": True, "data": task}


@router.delete("/cards/{task_id}")
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await TaskService.delete(db=db, task_id=task_id, user_id=current_user.id)
    return {"success": True, "data": {}}


@router.put("/cards/{task_id}/move", response_model=ApiResponse[TaskResponse])
async def move_task(
    task_id: int,
    task_move: TaskMove,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Move a task to a list of the same board at an explicit order"""
    task = await TaskService.move(
        db=db,
        task_id=task_id,
        user_id=current_user.id,
        destination_list_id=task_move.list_id,
        order=task_move.order
    )
    return {"success": True, "data": task}


@router.post("/cards/{task_id}/assign", response_model=ApiResponse[TaskResponse])
async def assign_user(
    task_id: int,
    assignment: TaskAssignment,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Assign a board member to a task"""
    task = await TaskService.assign_user(
        db=db,
        task_id=task_id,
        user_id=current_user.id,
        assignee_id=assignment.user_id
    )
    return {"success": True, "data": task}


@router.delete("/cards/{task_id}/assign/{assignee_id}", response_model=ApiResponse[TaskResponse])
async def unassign_user(
    task_id: int,
    assignee_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    task = await TaskService.unassign_user(
        db=db,
        task_id=task_id,
        user_id=current_user.id,
        assignee_id=assignee_id
    )
    return {"success": True, "data": task}

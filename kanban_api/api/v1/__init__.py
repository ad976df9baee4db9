from fastapi import APIRouter
from kanban_api.api.v1.boards import router as boards_router
from kanban_api.api.v1.lists import router as lists_router
from kanban_api.api.v1.tasks import router as tasks_router
from kanban_api.api.v1.activities import router as activities_router

# Create main API router
api_router = APIRouter(prefix="/api")

# Include routers
api_router.include_router(boards_router)
api_router.include_router(lists_router)
api_router.include_router(tasks_router)
api_router.include_router(activities_router)

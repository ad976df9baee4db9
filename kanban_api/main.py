import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import os
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import DataError, IntegrityError
from alembic.config import Config
from alembic import command

from kanban_api.db import init_db
from kanban_api.core import get_settings
from kanban_api.core.exceptions import KanbanError
from kanban_api.api.v1 import api_router
from kanban_api.core.middleware import RequestLoggingMiddleware
from kanban_api.logs import api_logger, debug_logger

# Get application settings
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        if settings.RUN_MIGRATIONS:
            alembic_cfg = Config(os.path.join(Path(__file__).parent.parent, "alembic.ini"))
            # env.py поднимает свой event loop, поэтому миграции идут в отдельном потоке
            await asyncio.to_thread(command.upgrade, alembic_cfg, "head")

        await init_db()
        api_logger.info("Database migrations applied and initialized successfully")
    except Exception as e:
        api_logger.error(f"Error applying migrations: {e}")
        raise

    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="REST API for Kanban boards, lists and cards",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(KanbanError)
async def kanban_exception_handler(request: Request, exc: KanbanError):
    """Доменные ошибки сервисов -> {success: false, message}"""
    debug_logger.warning(f"{request.method} {request.url.path}: {exc.status_code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in errors
    ) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message}
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    # Нарушение уникальности или внешнего ключа, например гонка двух одинаковых запросов
    debug_logger.warning(f"{request.method} {request.url.path}: integrity error: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Request conflicts with existing data"}
    )


@app.exception_handler(DataError)
async def data_exception_handler(request: Request, exc: DataError):
    # База отвергла значение (например, число вне диапазона колонки)
    debug_logger.warning(f"{request.method} {request.url.path}: data error: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Invalid value for a stored field"}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    # Детали не отдаем клиенту, только в лог
    debug_logger.error(f"Unhandled error on {request.method} {request.url.path}", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Server error"}
    )


app.include_router(api_router)


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    api_logger.info(f"Received health check request: {request.method} {request.url}")
    return {"message": f"{settings.PROJECT_NAME} is running"}


if __name__ == "__main__":
    import uvicorn
    print("\033[1;36m" + "=" * 50 + "\033[0m")
    print("\033[1;36m" + "  Запуск API сервера канбан-доски" + "\033[0m")
    print("\033[1;36m" + "=" * 50 + "\033[0m")

    api_logger.info("Сервер запускается на http://0.0.0.0:8000")

    uvicorn.run(
        "kanban_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )

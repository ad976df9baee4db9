import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from kanban_api.logs.server_log import api_logger
from kanban_api.logs.debug_log import debug_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Одна строка в api_requests.log на каждый запрос, подробности в debug.log"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        target = f"{request.method} {request.url.path}"
        debug_logger.log_request(request)

        try:
            response = await call_next(request)
        except Exception as e:
            # Ответ 500 формирует обработчик исключений приложения
            api_logger.error(f"{target} failed: {type(e).__name__}: {e}")
            raise

        elapsed = time.perf_counter() - started
        client = request.client.host if request.client else "unknown"
        api_logger.info(f"{target} -> {response.status_code} [{client}] {elapsed:.3f}s")
        debug_logger.log_response(response, elapsed)
        return response

import logging
import sys
import json
import inspect
import time
import traceback
from pathlib import Path
from functools import wraps

from kanban_api.core import get_settings
from kanban_api.core.exceptions import KanbanError

log_dir = Path(get_settings().LOG_DIR)
log_dir.mkdir(parents=True, exist_ok=True)

# ANSI цвета для консоли
BLUE = '\033[94m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
PURPLE = '\033[95m'
CYAN = '\033[96m'
END = '\033[0m'

# Заголовки, которые не пишем в лог
HIDDEN_HEADERS = {"authorization", "cookie"}

# Длинные результаты функций обрезаем
MAX_RESULT_LENGTH = 1000


def format_object(obj) -> str:
    if isinstance(obj, (list, dict, tuple, set)):
        try:
            return json.dumps(obj, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            pass
    return str(obj)


def _safe_headers(headers) -> dict:
    return {
        key: ("***" if key.lower() in HIDDEN_HEADERS else value)
        for key, value in dict(headers).items()
    }


def _build_logger(name: str, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    # Повторный импорт модуля не должен плодить обработчики
    logger.handlers.clear()

    formatter = logging.Formatter(
        f'%(asctime)s - %(levelname)s - {BLUE}[%(module)s:%(lineno)d %(funcName)s]{END} - %(message)s'
    )
    for handler in (
        logging.FileHandler(log_dir / "debug.log", encoding='utf-8'),
        logging.StreamHandler(sys.stdout),
    ):
        handler.setFormatter(formatter)
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


class DebugLogger:
    """Подробный цветной лог для разработки: файл debug.log и консоль.

    Место вызова (модуль, строка, функция) берется из кадра, вызвавшего
    метод логгера, а не из этого модуля.
    """

    def __init__(self, name="debug", level=logging.DEBUG):
        self.logger = _build_logger(name, level)

    def _log(self, level, message, colour=None):
        if colour:
            message = f"{colour}{message}{END}"
        # stacklevel=3: _log -> debug/info/... -> вызывающий код
        self.logger.log(level, message, stacklevel=3)

    def debug(self, message):
        self._log(logging.DEBUG, message)

    def info(self, message):
        self._log(logging.INFO, message, GREEN)

    def warning(self, message):
        self._log(logging.WARNING, message, YELLOW)

    def error(self, message, exc: BaseException = None):
        """Ошибка; трейс берется из exc или из обрабатываемого исключения"""
        if exc is not None:
            trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        else:
            trace = traceback.format_exc()
        if trace and trace != 'NoneType: None\n':
            message = f"{message}\nTraceback:\n{trace}"
        self._log(logging.ERROR, message, RED)

    def log_exception(self, message="Произошло исключение", exc: BaseException = None):
        if exc is None:
            exc = sys.exc_info()[1]
        if exc is not None:
            message = f"{message}: {type(exc).__name__}: {exc}"
        self.error(message, exc)

    def start_func(self, func_name, params=None):
        suffix = f" с параметрами: {format_object(params)}" if params else ""
        self.debug(f"{PURPLE}-> {func_name}{END}{suffix}")

    def end_func(self, func_name, result=None, execution_time=None):
        parts = [f"{PURPLE}<- {func_name}{END}"]
        if result is not None:
            parts.append(f"результат: {format_object(result)[:MAX_RESULT_LENGTH]}")
        if execution_time is not None:
            parts.append(f"за {execution_time:.4f}с")
        self.debug(", ".join(parts))

    def log_request(self, request):
        client = getattr(request, 'client', None)
        headers = _safe_headers(getattr(request, 'headers', {}))
        self.debug(
            f"{CYAN}HTTP запрос:{END} {request.method} {request.url}\n"
            f"{CYAN}Клиент:{END} {client.host if client else 'unknown'}\n"
            f"{CYAN}Заголовки:{END} {json.dumps(headers, indent=2, ensure_ascii=False)}"
        )

    def log_response(self, response, process_time=None):
        status_code = getattr(response, 'status_code', 0)
        if status_code >= 500:
            colour = RED
        elif status_code >= 400:
            colour = YELLOW
        else:
            colour = GREEN
        message = f"{CYAN}HTTP ответ:{END} {colour}{status_code}{END}"
        if process_time is not None:
            message += f" ({process_time:.3f}с)"
        self.debug(message)


def _call_args(func, args, kwargs) -> dict:
    bound = dict(zip(inspect.signature(func).parameters, args))
    bound.update(kwargs)
    # Сессию БД и self/cls не логируем
    for name in ("self", "cls", "db"):
        bound.pop(name, None)
    return bound


def log_function(logger=None):
    """Декоратор: вход, выход, время и исключения функции (sync и async)"""

    def decorator(func):
        name = func.__qualname__

        def target():
            return logger or debug_logger

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                log = target()
                log.start_func(name, _call_args(func, args, kwargs))
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except KanbanError as e:
                    log.warning(f"{name} отклонено: {e.message}")
                    raise
                except Exception:
                    log.log_exception(f"Ошибка в {name}")
                    raise
                log.end_func(name, result, time.perf_counter() - started)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            log = target()
            log.start_func(name, _call_args(func, args, kwargs))
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except KanbanError as e:
                log.warning(f"{name} отклонено: {e.message}")
                raise
            except Exception:
                log.log_exception(f"Ошибка в {name}")
                raise
            log.end_func(name, result, time.perf_counter() - started)
            return result

        return wrapper

    return decorator


debug_logger = DebugLogger()

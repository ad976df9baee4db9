import logging
import sys
from pathlib import Path

from kanban_api.core import get_settings

log_dir = Path(get_settings().LOG_DIR)
log_dir.mkdir(parents=True, exist_ok=True)


def setup_logging(name: str = "api_logger", filename: str = "api_requests.log") -> logging.Logger:
    """Лог запросов: файл в LOG_DIR и stdout, уровень INFO"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    # Повторный импорт не должен дублировать обработчики
    if logger.handlers:
        return logger

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    for handler in (logging.FileHandler(log_dir / filename, encoding='utf-8'), logging.StreamHandler(sys.stdout)):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


api_logger = setup_logging()

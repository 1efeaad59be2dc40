"""
Логирование сервиса этикеток.

Сообщения пишутся с тегом подсистемы в начале: [TSPL], [RENDER], [PRINT],
[LAYOUT], [SCENE]... В JSON тег выносится в отдельное поле, чтобы
фильтровать по подсистеме без разбора текста. В debug режиме формат
человекочитаемый.
"""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from labelkit.config import get_settings

TAG_RE = re.compile(r"^\[([A-Z_]+)\]\s*")

# Поля, которые есть у любой записи; всё остальное пришло через extra=
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

# Библиотеки, которые на INFO/DEBUG засоряют лог запросами и SQL
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "PIL", "multipart")


def split_tag(message: str) -> tuple[str | None, str]:
    """'[PRINT] Задание 7' → ('PRINT', 'Задание 7'). Без тега → (None, message)."""
    match = TAG_RE.match(message)
    if match is None:
        return None, message
    return match.group(1), message[match.end():]


class JSONFormatter(logging.Formatter):
    """
    Одна запись = одна строка JSON.

    {"timestamp": ..., "service": ..., "level": "INFO", "logger": ..., "tag": "PRINT",
     "message": "Задание 7", "extra": {...}}
    """

    def __init__(self, service: str | None = None):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        tag, message = split_tag(record.getMessage())
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        if self.service:
            log_data["service"] = self.service
        if tag:
            log_data["tag"] = tag
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_FIELDS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )


def setup_logging() -> None:
    """
    Настройка корневого логгера.

    debug: человекочитаемый формат и уровень DEBUG для labelkit.
    Иначе JSON с именем сервиса и уровень из LOG_LEVEL.
    """
    settings = get_settings()

    log_level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
    formatter = HumanFormatter() if settings.debug else JSONFormatter(service=settings.app_name)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

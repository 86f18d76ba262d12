# safehome/common/logger.py
"""
Структурированное логирование SafeHome.

Консоль в JSON или цветном тексте, опционально общий файл
с ротацией по размеру и отдельный файл только для ошибок.
Сообщения пишутся через асинхронные log_* с уровнем TypeMsg.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

from safehome.common.constants import TypeMsg

if TYPE_CHECKING:
    from safehome.config.loader import LoggingSettings


DEFAULT_LOGGER_NAME = "safehome"
LOG_BACKUP_COUNT = 5

_LEVELS: dict[TypeMsg, int] = {
    TypeMsg.DEBUG: logging.DEBUG,
    TypeMsg.INFO: logging.INFO,
    TypeMsg.WARNING: logging.WARNING,
    TypeMsg.ERROR: logging.ERROR,
    TypeMsg.CRITICAL: logging.CRITICAL,
}

_loggers: dict[str, logging.Logger] = {}
_shared_handlers: list[logging.Handler] | None = None


class JsonFormatter(logging.Formatter):
    """Одна запись - одна строка JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Читаемый вывод для разработки."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    GRAY = "\033[90m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.GRAY)
        when = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        where = ""
        extra_data = getattr(record, "extra_data", None) or {}
        if extra_data.get("caller_function"):
            where = (
                f" {self.GRAY}[{extra_data.get('caller_module')}.{extra_data['caller_function']}() "
                f"{extra_data.get('caller_file')}:{extra_data.get('caller_line')}]{self.RESET}"
            )

        line = f"{when} {color}[{record.levelname}]{self.RESET}{where} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _logging_settings() -> "LoggingSettings | None":
    try:
        from safehome.config import settings
    except Exception:
        # Конфиг не читается: только консоль с уровнем DEBUG
        return None
    return settings.logging


def _make_formatter(log_format: str) -> logging.Formatter:
    return JsonFormatter() if log_format == "json" else ColoredFormatter()


def _file_handlers(config: "LoggingSettings") -> list[logging.Handler]:
    """Общий файл и файл ошибок, одни на процесс."""
    global _shared_handlers
    if _shared_handlers is not None:
        return _shared_handlers

    log_path = Path(config.LOG_FILE_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = _make_formatter(config.LOG_FORMAT)

    main_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    error_handler = RotatingFileHandler(
        log_path.with_name("error.log"),
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)

    for handler in (main_handler, error_handler):
        handler.setFormatter(formatter)

    _shared_handlers = [main_handler, error_handler]
    return _shared_handlers


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Настроенный логгер; хендлеры добавляются один раз на имя."""
    cached = _loggers.get(name)
    if cached is not None:
        return cached

    config = _logging_settings()
    level = config.LOG_LEVEL if config else "DEBUG"
    log_format = config.LOG_FORMAT if config else "colored"

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    logger.propagate = False

    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(_make_formatter(log_format))
        logger.addHandler(console)
        if config is not None and config.LOG_TO_FILE:
            for handler in _file_handlers(config):
                logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def setup_logging() -> None:
    """Готовит основной логгер и приглушает шумные библиотеки."""
    get_logger(DEFAULT_LOGGER_NAME)
    for noisy in ("asyncpg", "uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _get_caller_info(depth: int = 2) -> dict[str, Any]:
    """
    Место вызова log_*: depth кадров вверх от этой функции
    ([0] _get_caller_info, [1] log_*, [2] вызывающий код).
    """
    try:
        frame = sys._getframe(depth)
    except ValueError:
        return {}

    try:
        code = frame.f_code
        return {
            "caller_function": code.co_name,
            "caller_module": frame.f_globals.get("__name__", "unknown"),
            "caller_file": Path(code.co_filename).name,
            "caller_line": frame.f_lineno,
        }
    finally:
        del frame


def _emit(
    level: int,
    message: str,
    logger_name: str,
    extra: dict[str, Any] | None,
    exc_info: bool = False,
) -> None:
    # [0] _get_caller_info, [1] _emit, [2] log_*, [3] вызывающий код
    record_extra = {"extra_data": {**_get_caller_info(3), **(extra or {})}}
    get_logger(logger_name).log(level, message, extra=record_extra, exc_info=exc_info)


async def log_info(
    message: str,
    *,
    type_msg: TypeMsg = TypeMsg.INFO,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
) -> None:
    """
    Запись в лог с уровнем type_msg.

    Args:
        message: Текст сообщения
        type_msg: Уровень
        logger_name: Имя логгера
        extra: Поля контекста (child_id, event и т.п.)
    """
    _emit(_LEVELS.get(type_msg, logging.INFO), message, logger_name, extra)


async def log_debug(
    message: str,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
) -> None:
    _emit(logging.DEBUG, message, logger_name, extra)


async def log_warning(
    message: str,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
) -> None:
    _emit(logging.WARNING, message, logger_name, extra)


async def log_error(
    message: str,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """Запись ERROR; exc_info=True добавляет трейсбек текущего исключения."""
    _emit(logging.ERROR, message, logger_name, extra, exc_info=exc_info)

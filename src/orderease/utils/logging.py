"""Structured logging for orderease.

Records go through the standard library root logger so third-party output
(uvicorn, SQLAlchemy, Protean) lands in the same place as ours. structlog
formats them: JSON lines in production and staging, coloured console
output with rich tracebacks elsewhere. Request-scoped fields such as the
request id are bound with ``bind_request`` and merged into every record
logged while the request runs.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

_STRUCTURED_ENVIRONMENTS = ("production", "staging")

_DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# database.log_level values mapped onto the SQLAlchemy engine logger
_SQL_LEVELS = {
    "silent": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
}

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def current_environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENV") or "development").lower()


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    return handler


def _install_handlers(level: str, log_dir: str, prefix: str, sql_level: str) -> None:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating_handler(directory / f"{prefix}.log", level),
        _rotating_handler(directory / f"{prefix}_error.log", logging.ERROR),
    ]

    logging.getLogger("sqlalchemy.engine").setLevel(_SQL_LEVELS.get(sql_level.lower(), logging.WARNING))
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _renderer(environment: str):
    if environment in _STRUCTURED_ENVIRONMENTS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def configure_logging(
    level: str | None = None,
    log_dir: str = "logs",
    log_file_prefix: str = "orderease",
    sql_level: str = "warn",
) -> None:
    """Route stdlib and structlog output through one set of handlers.

    ``level`` falls back to ``LOG_LEVEL`` and then to a per-environment
    default (quiet under test, verbose in development).
    """
    environment = current_environment()
    level = (level or os.getenv("LOG_LEVEL") or _DEFAULT_LEVELS.get(environment, "INFO")).upper()
    _install_handlers(level, log_dir, log_file_prefix, sql_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(environment),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request(**fields) -> None:
    """Attach fields to every record logged until ``clear_request``."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()

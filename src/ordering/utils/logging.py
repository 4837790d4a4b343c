"""Logging configuration for the ordering service.

stdlib logging owns the handlers (console plus rotating files under
`LOG_DIR`); structlog formats the records. Production and staging emit JSON,
everything else a colored console with rich tracebacks.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Library loggers capped at WARNING. httpx/httpcore log every provider and
# catalog request at INFO.
_QUIET_LOGGERS = ("protean", "httpx", "httpcore", "asyncio")

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def _environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """Log level for the current environment; `LOG_LEVEL` overrides it."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(_environment(), "INFO"))


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _configure_handlers(level: str, log_dir: Path) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating(log_dir / "ordering.log", level),
        _rotating(log_dir / "ordering_error.log", logging.ERROR),
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer(environment: str):
    if environment in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def _configure_structlog(environment: str) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            _renderer(environment),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: Path | None = None) -> None:
    """Configure stdlib handlers and structlog for the whole process."""
    _configure_handlers(get_log_level(), log_dir or Path(os.getenv("LOG_DIR", "logs")))
    _configure_structlog(_environment())


def add_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()

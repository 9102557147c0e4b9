"""Structured logging: structlog rendering over stdlib loggers, with per-session context."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

# HTTP client libraries log every backend request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _build_formatter(use_json: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer = structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    rotation_max_mb: int,
    rotation_backups: int,
) -> logging.Handler | None:
    """Rotating file handler, or None when the file cannot be opened."""
    path = Path(file_path).resolve()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=rotation_max_mb * 1024 * 1024,
            backupCount=rotation_backups,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Log file disabled: could not open {path}: {e}\n")
        return None
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging(
    level: str = "INFO",
    file_path: str = "",
    rotation_max_mb: int = 5,
    rotation_backups: int = 3,
) -> None:
    """Configure structlog and the root logger.

    JSON lines in production, console rendering at DEBUG. Workflow modules log
    through logging.getLogger(__name__); values bound with bind_context()
    (session id, workflow kind) are merged into every line of the request.
    An optional rotating file receives the same output as stdout.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = _build_formatter(use_json=level.upper() != "DEBUG")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(formatter)
    stdout.setLevel(log_level)
    root.addHandler(stdout)

    if file_path and file_path.strip():
        handler = _file_handler(file_path.strip(), log_level, formatter, rotation_max_mb, rotation_backups)
        if handler is not None:
            root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def bind_context(**values: object) -> None:
    """Attach values (e.g. session_id) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()

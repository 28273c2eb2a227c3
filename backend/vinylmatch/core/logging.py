"""Structured logging for vinylmatch.

structlog renders every application event; stdlib logging carries the output
so uvicorn and SQLAlchemy records end up in the same places. Exceptions are
expanded into JSON-friendly dictionaries instead of pre-rendered text.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import EventDict

ExcInfo = tuple[type[BaseException] | None, BaseException | None, TracebackType | None]

TracebackFrame = dict[str, str | int | None]

ExceptionDetails = dict[str, Any]

APP_LOG_FILE = "vinylmatch.json.log"
DB_LOG_FILE = "vinylmatch.db.json.log"

DB_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
    "aiosqlite",
)

UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def format_exception_for_json(exc_info: ExcInfo | None) -> ExceptionDetails:
    """Describe an exception as a JSON-serializable dict.

    Keys: exception_type, exception_message, exception_module and, when a
    traceback is available, traceback_frames (filename, lineno, function,
    source_line) and traceback_text. Matching errors also carry error_code.
    """
    if not exc_info or exc_info == (None, None, None):
        return {}

    exc_type, exc_value, exc_tb = exc_info
    details: ExceptionDetails = {
        "exception_type": exc_type.__name__ if exc_type else None,
        "exception_message": str(exc_value) if exc_value is not None else None,
        "exception_module": exc_type.__module__ if exc_type else None,
    }

    error_code = getattr(exc_value, "code", None)
    if isinstance(error_code, str):
        details["error_code"] = error_code

    if exc_tb is not None:
        frames: list[TracebackFrame] = []
        for summary in traceback.extract_tb(exc_tb):
            frame: TracebackFrame = {
                "filename": summary.filename,
                "lineno": summary.lineno,
                "function": summary.name,
            }
            if summary.line:
                frame["source_line"] = summary.line.strip()
            frames.append(frame)

        details["traceback_frames"] = frames
        details["traceback_text"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )

    return details


def exception_processor(
    logger: structlog.BoundLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Replace exc_info with structured ``exception`` and ``exception_summary`` fields."""
    exc_info = event_dict.pop("exc_info", None)

    if exc_info is True:
        exc_info = sys.exc_info()
    elif isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

    details = format_exception_for_json(exc_info) if exc_info else {}
    if details:
        event_dict["exception"] = details
        if details.get("exception_type") and details.get("exception_message"):
            event_dict["exception_summary"] = (
                f"{details['exception_type']}: {details['exception_message']}"
            )

    return event_dict


class JSONFormatter(logging.Formatter):
    """One JSON object per stdlib record; used for the database log file."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = format_exception_for_json(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _route_logger(name: str, handler: logging.Handler, level: int | None = None) -> None:
    """Detach a stdlib logger from the root and send it only to ``handler``."""
    target = logging.getLogger(name)
    for old in target.handlers[:]:
        old.close()
        target.removeHandler(old)
    target.addHandler(handler)
    target.propagate = False
    if level is not None:
        target.setLevel(level)


def _file_handlers(logs_dir: Path, level: int) -> tuple[logging.Handler, logging.Handler] | None:
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        app_handler = logging.FileHandler(logs_dir / APP_LOG_FILE, encoding="utf-8")
        db_handler = logging.FileHandler(logs_dir / DB_LOG_FILE, encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"Warning: file logging disabled: {exc}\n")
        return None

    app_handler.setLevel(level)
    # The database loggers' own level decides what reaches this handler
    db_handler.setLevel(logging.DEBUG)
    db_handler.setFormatter(JSONFormatter())
    return app_handler, db_handler


def setup_logging(
    debug: bool = False,
    logs_dir: Path | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        debug: DEBUG level and the colored console renderer (stdout only)
        logs_dir: Write application and database logs as JSON files here
        log_level: Level name that overrides the one implied by ``debug``
    """
    if log_level is not None:
        level = logging.getLevelName(log_level.upper())
    else:
        level = logging.DEBUG if debug else logging.INFO

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)

    handlers = _file_handlers(logs_dir, level) if logs_dir else None
    app_handler = handlers[0] if handlers else stdout_handler

    logging.basicConfig(format="%(message)s", level=level, handlers=[app_handler], force=True)

    for name in UVICORN_LOGGERS:
        _route_logger(name, stdout_handler)

    if handlers:
        db_level = logging.INFO if debug else logging.WARNING
        for name in DB_LOGGERS:
            _route_logger(name, handlers[1], db_level)

    renderer: Any
    if debug and handlers is None:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            exception_processor,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

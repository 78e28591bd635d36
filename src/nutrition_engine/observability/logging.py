"""Logging configuration using Loguru.

Production runs emit one JSON object per line (serialized with orjson);
development runs get colorized, human-readable lines. Job-scoped fields
such as the ETL job id or the discovery item being processed are carried in
a context variable and attached to every record emitted inside that scope.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any


_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Libraries whose INFO chatter drowns out ETL progress lines
_NOISY_LOGGERS = ("asyncpg", "httpx", "httpcore", "asyncio", "arq")


class InterceptHandler(logging.Handler):
    """Forward standard library log records (asyncpg, arq, httpx) to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record by forwarding to Loguru."""
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _json_sink_format(record: dict[str, Any]) -> str:
    """Serialize a record, merged with the active job context, as JSON."""
    record["extra"].update(_log_context.get())

    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["extra"].get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
    }
    payload.update(
        (k, v)
        for k, v in record["extra"].items()
        if k != "name" and not k.startswith("_")
    )

    exc = record["exception"]
    if exc:
        payload["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    # Stash the pre-rendered JSON so braces in values never reach Loguru's formatter
    record["extra"]["_json"] = orjson.dumps(payload, default=str).decode()
    return "{extra[_json]}\n{exception}" if exc else "{extra[_json]}\n"


def _text_sink_format(record: dict[str, Any]) -> str:
    """Human-readable format including job context and structured fields."""
    context = _log_context.get()
    fields = {
        k: v
        for k, v in record["extra"].items()
        if k != "name" and not k.startswith("_")
    }
    fields.update(context)

    suffix = ""
    if fields:
        record["extra"]["_fields"] = " ".join(f"{k}={v}" for k, v in fields.items())
        suffix = " | {extra[_fields]}"

    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
        f"{suffix}\n"
    )
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """Configure Loguru sinks for the engine.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" or "text". Development always uses text.
        is_development: Enable colorized output and variable diagnosis.
        log_file: Optional path for a rotated JSON log file.
    """
    logger.remove()
    logger.configure(extra={"name": "nutrition_engine"})

    level = log_level.upper()
    if log_format == "json" and not is_development:
        logger.add(
            sys.stdout,
            format=_json_sink_format,
            level=level,
            colorize=False,
            backtrace=True,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=_text_sink_format,
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=_json_sink_format,
            level=level,
            rotation="100 MB",
            retention="7 days",
            compression="gz",
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> "logger":  # type: ignore[valid-type]
    """Return the Loguru logger bound to a module name."""
    return logger.bind(name=name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every log record emitted in the current async context.

    Example:
        bind_context(job_id=str(job_id), job_type="ingredient_discovery")
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def unbind_context(*keys: str) -> None:
    """Remove fields previously attached with ``bind_context``."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


def clear_context() -> None:
    """Drop all context fields."""
    _log_context.set({})


def get_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind fields for the duration of a ``with`` block, then restore."""
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)


__all__ = [
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "log_context",
    "logger",
    "setup_logging",
    "unbind_context",
]

"""Observability: structured logging and Prometheus metrics."""

from nutrition_engine.observability.logging import (
    bind_context,
    clear_context,
    get_logger,
    log_context,
    setup_logging,
)


__all__ = [
    "bind_context",
    "clear_context",
    "get_logger",
    "log_context",
    "setup_logging",
]

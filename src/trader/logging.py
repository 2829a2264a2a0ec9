"""Structured logging configuration using structlog with async context propagation."""

import logging
import os

import structlog


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Configure structlog with JSON or console rendering.

    Uses structlog.contextvars so per-tick fields (block height) bound by the
    scheduler appear on every event emitted while that tick is processed.
    Rendering format comes from ``log_format`` or the LOG_FORMAT environment
    variable: "json" for production, "console" (default) for development.
    """
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "console")
    log_format = log_format.lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # uvicorn and ccxt are chatty at INFO
    for noisy in ("uvicorn.access", "ccxt"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)


def bind_tick_context(block_height: int) -> None:
    """Attach the block height being processed to all subsequent log events."""
    structlog.contextvars.bind_contextvars(block_height=block_height)


def clear_tick_context() -> None:
    structlog.contextvars.unbind_contextvars("block_height")

"""
Structured logging for the auction orchestration core.

Every log line emitted while an auction is running carries its auction ID,
including lines written from dispatcher worker threads.
"""

import logging
import os
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar, copy_context
from typing import Any

import structlog

# Auction currently being orchestrated in this context
auction_id_var: ContextVar[str] = ContextVar("auction_id", default="")

# Fields that can hold whole creatives or response bodies
PAYLOAD_FIELDS = ("ad", "adm", "response_text", "payload")
MAX_PAYLOAD_CHARS = 500


def get_auction_id() -> str:
    """Get the current auction ID from context."""
    return auction_id_var.get()


def set_auction_id(auction_id: str) -> None:
    """Set the auction ID in context."""
    auction_id_var.set(auction_id)


def generate_auction_id() -> str:
    """Generate a new unique auction ID."""
    return f"{int(time.time())}-{uuid.uuid4().hex[:8]}"


def in_current_context(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Bind func to a copy of the caller's context.

    Executor threads start with an empty context; wrapping the submitted
    callable keeps the auction ID and any bound fields on worker logs.
    """
    ctx = copy_context()

    def run(*args: Any, **kwargs: Any) -> Any:
        return ctx.run(func, *args, **kwargs)

    return run


def add_auction_id(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor to add the auction ID to log entries."""
    auction_id = get_auction_id()
    if auction_id and "auction_id" not in event_dict:
        event_dict["auction_id"] = auction_id
    return event_dict


def truncate_payloads(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor capping creative markup and response bodies."""
    for key in PAYLOAD_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_PAYLOAD_CHARS:
            event_dict[key] = value[:MAX_PAYLOAD_CHARS] + "...(truncated)"
    return event_dict


def add_service_info(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict["service"] = "hbcore"
    return event_dict


def configure_logging(
    level: str | None = None,
    format: str | None = None,
    show_timestamps: bool = True,
) -> None:
    """
    Configure structured logging.

    Explicit arguments win over LOG_LEVEL / LOG_FORMAT, which win over the
    defaults (INFO, json).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format ('json' or 'console')
        show_timestamps: Whether to include timestamps
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    format = (format or os.getenv("LOG_FORMAT", "json")).lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_auction_id,
        add_service_info,
        truncate_payloads,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if show_timestamps:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if format == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def auction_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for auction lifecycle events."""
    return get_logger("hbcore.auction")


def bidder_logger(bidder_code: str) -> structlog.stdlib.BoundLogger:
    """Get logger for events about one bidder code."""
    return get_logger("hbcore.bidder").bind(bidder=bidder_code)


def config_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for S2S configuration events."""
    return get_logger("hbcore.config")


def http_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for outbound HTTP to the S2S endpoint."""
    return get_logger("hbcore.http")


class LogContext:
    """
    Context manager scoping logs to one auction.

    Only the fields it bound are removed on exit, so nested contexts and
    fields bound by the caller survive.
    """

    def __init__(self, auction_id: str | None = None, **initial_context: Any):
        """
        Initialize log context.

        Args:
            auction_id: Optional auction ID (generated if not provided)
            **initial_context: Additional context to bind
        """
        self.auction_id = auction_id or generate_auction_id()
        self.initial_context = initial_context
        self.token = None
        self._bound_tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self.token = auction_id_var.set(self.auction_id)
        if self.initial_context:
            self._bound_tokens = structlog.contextvars.bind_contextvars(
                **self.initial_context
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._bound_tokens:
            structlog.contextvars.reset_contextvars(**self._bound_tokens)
        auction_id_var.reset(self.token)


# Initialize with defaults on module load
configure_logging()

"""
ALPHA INTEL — Structured Logging Utility
structlog with per-request context (request id, resource, payer) carried in
contextvars so every event emitted while serving a report is tagged.
"""
import logging
import sys
import uuid
from typing import Optional

import structlog

from alpha_intel.config.settings import get_settings

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure structlog and the stdlib root logger once per process."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    renderer = structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn and aiohttp log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    _configured = True


def bind_request(resource: str, **extra) -> str:
    """Start a fresh logging context for one HTTP request and return its id."""
    request_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, resource=resource, **extra)
    return request_id


def bind_caller(caller: Optional[str]) -> None:
    structlog.contextvars.bind_contextvars(caller=caller)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Get a named structured logger."""
    return structlog.get_logger(name or "alpha_intel").bind(component=name or "alpha_intel")

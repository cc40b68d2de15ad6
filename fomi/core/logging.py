"""
Structured Logging

structlog setup for the client. Development gets coloured console lines,
every other environment gets one JSON object per event. The signed-in
viewer is carried in a context variable so each event can be traced back
to a user without passing the id around.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import Processor

from ..config import Settings, get_settings


def _level(settings: Settings, override: Optional[str]) -> int:
    name = override or ("DEBUG" if settings.debug else "INFO")
    return getattr(logging, name.upper())


def setup_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None):
    """Configure structlog once at startup; `log_level` overrides the debug flag."""
    settings = settings or get_settings()
    level = _level(settings, log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_viewer(user_id: Optional[str]) -> None:
    """Tag later events with the signed-in user, or drop the tag on sign-out."""
    if user_id is None:
        structlog.contextvars.unbind_contextvars("viewer_id")
    else:
        structlog.contextvars.bind_contextvars(viewer_id=user_id)


def get_logger(name: str = "fomi") -> structlog.BoundLogger:
    """Logger whose events carry the module name."""
    return structlog.get_logger(logger_name=name)

"""Structured logging for the relay.

Every log line is a structlog event carrying the application name, an ISO
timestamp, the log level and whatever request context has been bound
(correlation id).
"""

import logging
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


class AppNameProcessor:
    """Tag each event with the configured application name."""

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", self.app_name)
        return event_dict


def build_processors(app_name: str, json_logs: bool) -> List[Processor]:
    """Processor chain shared by JSON and console output."""
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        AppNameProcessor(app_name),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(app_name: str, log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog on top of the standard library root logger.

    Args:
        app_name: Value of the ``app`` field on every event
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render events as JSON instead of console text
    """
    structlog.configure(
        processors=build_processors(app_name, json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)


def bind_context(**kwargs: Any) -> None:
    """Bind values to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)

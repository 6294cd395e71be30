"""structlog logging setup."""

import logging
import sys
from typing import Optional

import structlog

from formrequest.config import get_settings


def setup_logging(log_level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """Configure structlog for JSON or human-readable output.

    Arguments left as ``None`` fall back to ``FormRequestSettings``.
    """
    settings = get_settings()
    if log_level is None:
        log_level = settings.log_level
    if json_format is None:
        json_format = settings.log_json

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

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

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("formrequest")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))


def setup_quiet_logging(log_level: Optional[str] = None) -> None:
    """Keep structlog's default output but drop events below ``log_level``.

    Used by the pytest plugin when ``setup_logging`` is not requested, so
    debug events do not reach the output of the tests under run.
    """
    if log_level is None:
        log_level = get_settings().log_level
    level = getattr(logging, log_level.upper(), logging.WARNING)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))

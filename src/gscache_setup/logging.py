"""Logging configuration for the setup step."""
import json
import logging
import os
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor

IGNORED_LOGGERS = [
    "aiohttp",
    "asyncio",
]

LOG_FORMAT_ENV = "GSCACHE_SETUP_LOG_FORMAT"


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""
    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
        }
        if event_dict:
            items["data"] = event_dict
        return json.dumps(items, separators=(',', ':'), default=str)


def resolve_level(level: str = "INFO") -> str:
    """Runner debug re-runs set RUNNER_DEBUG=1."""
    if os.environ.get("RUNNER_DEBUG") == "1":
        return "DEBUG"
    return level.upper()


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the setup step.

    Log lines go to stdout so the runner shows them inline with the step
    output. ``GSCACHE_SETUP_LOG_FORMAT=json`` switches to one JSON object
    per line.
    """
    level = resolve_level(level)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
        force=True,
    )
    for name in IGNORED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer: Processor
    if os.environ.get(LOG_FORMAT_ENV) == "json":
        renderer = CompactJSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

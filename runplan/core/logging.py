"""
Structured logging configuration.

JSON lines in production (or with LOG_FORMAT=json), plain text locally.
Plan engine records carry a "component" field naming the stage that
logged them (goal_resolver, guardrails, ...), so guardrail corrections
can be filtered out of a busy log stream.

Usage:
    from runplan.core.logging import setup_logging
    setup_logging()                 # from settings
    setup_logging(fmt="json")       # explicit override
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from runplan.core.config import settings

ENGINE_LOGGER = "runplan.services.plan_framework"
TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
QUIET_LOGGERS = ("uvicorn.access", "httpx")


def component_for(logger_name: str) -> str:
    """Last dotted segment for engine loggers, the full name otherwise."""
    if logger_name.startswith(ENGINE_LOGGER + "."):
        return logger_name.rsplit(".", 1)[-1]
    return logger_name


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": component_for(record.name),
            "message": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_fields", None)
        if isinstance(extra, dict):
            payload.update(extra)

        # Dates and enums in extra_fields are written as strings
        return json.dumps(payload, default=str)


def _level(name: Optional[str], fallback: int) -> int:
    if not name:
        return fallback
    return getattr(logging, name.upper(), fallback)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Overrides LOG_LEVEL
        fmt: "json" or "text"; overrides LOG_FORMAT

    PLAN_LOG_LEVEL, when set, applies to the plan engine loggers only.
    """
    root_level = _level(level or settings.LOG_LEVEL, logging.INFO)
    use_json = (fmt or settings.LOG_FORMAT) == "json" or settings.ENVIRONMENT == "production"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(root_level)
    handler.setFormatter(JSONFormatter() if use_json else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    root.addHandler(handler)

    engine = logging.getLogger(ENGINE_LOGGER)
    engine.setLevel(_level(settings.PLAN_LOG_LEVEL, logging.NOTSET))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root

# utils/logger.py
# SQI Engine — Structured JSON logging for every module.
# One handler on the "sqi" parent logger; components log through child loggers.
# Imports from: utils/config.py only.

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from utils.config import LOG_LEVEL

ROOT_NAME = "sqi"

# Attributes every LogRecord already carries. Structured fields with these
# names would clobber them (logging raises KeyError), so they get prefixed.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

# Keyword arguments that belong to logging itself, not to the event payload
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:
        {"timestamp", "level", "component", "event", ...fields, "exception"?}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level":     record.levelname,
            "component": getattr(record, "component", record.name),
            "event":     record.getMessage(),
        }
        payload.update(getattr(record, "fields", {}))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        root.propagate = False
    return root


class SQILogger(logging.LoggerAdapter):
    """
    Adapter that turns keyword arguments into structured fields:

        log = get_logger("analysis.sqi_engine")
        log.info("sqi_computed", student_id="S123", overall_sqi=72.4)

    `bind()` returns a copy that stamps the given fields on every event.
    """

    def __init__(self, component: str, context: Optional[dict[str, Any]] = None) -> None:
        _configure_root()
        super().__init__(logging.getLogger(f"{ROOT_NAME}.{component}"), dict(context or {}))
        self.component = component

    def bind(self, **fields: Any) -> "SQILogger":
        return SQILogger(self.component, {**self.extra, **fields})

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        fields = dict(self.extra)
        for key in [k for k in kwargs if k not in _LOGGING_KWARGS]:
            value = kwargs.pop(key)
            fields[f"field_{key}" if key in _RECORD_ATTRS else key] = value

        kwargs["extra"] = {"component": self.component, "fields": fields}
        return msg, kwargs


def get_logger(component: str) -> SQILogger:
    return SQILogger(component)

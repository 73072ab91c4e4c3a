from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from .context import get_request_id

# Third-party loggers routed through the root handler.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_configured = False


def _request_id_processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    rid = get_request_id()
    if rid:
        event_dict.setdefault("request_id", rid)
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        _request_id_processor,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_shared_processors(),
        )
    )
    return handler


def configure_logging(*, level: str | int = "INFO") -> None:
    """
    JSON lines on stdout for both structlog and stdlib loggers, each carrying
    the current request id. Safe to call more than once.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.handlers = [_json_handler()]
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for name in _ROUTED_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.propagate = True

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None):
    return structlog.get_logger(name)

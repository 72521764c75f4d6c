from __future__ import annotations

import contextvars
import json
import logging
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from os import getenv
from typing import Any, Iterator

REQUEST_ID_HEADER = "X-Request-ID"
SERVICE_NAME = "sitemedia"

_request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar(
    "sitemedia_request_id", default="-"
)

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "request_id"}


def new_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return _request_id_ctx.get()


@contextmanager
def bind_request_id(value: str | None = None) -> Iterator[str]:
    """Tag every log line emitted inside the block with one request id."""
    request_id = value or new_request_id()
    token = _request_id_ctx.set(request_id)
    try:
        yield request_id
    finally:
        _request_id_ctx.reset(token)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def _jsonable(value: Any) -> Any:
    # ResourceType, RenderState and UrlStrategy show up in extra= fields.
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return value


class JsonFormatter(logging.Formatter):
    """One JSON object per line: fixed envelope first, then ``extra=`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        payload.update(
            (key, _jsonable(value))
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_") and key not in payload
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str | None = None) -> None:
    level = (level or getenv("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    # Request logging comes from the request-id middleware, not uvicorn.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    # supabase-py routes every PostgREST call through httpx.
    logging.getLogger("httpx").setLevel(logging.WARNING)

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextvars import ContextVar
from typing import Any, Dict, Optional


_TRACE_ID_CTX: ContextVar[str] = ContextVar("trace_id", default="unknown")
_LOGGER = logging.getLogger("anndata_ai")
_INITIALIZED = False
_LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

# never written to the log even if a caller passes them
_REDACTED_FIELDS = {"api_key", "apikey", "authorization", "access_token", "token"}


def _event_handler(log_path: Optional[str]) -> Optional[logging.Handler]:
    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    if logging.getLogger().handlers:
        # a launcher already configured the root logger; events propagate there
        return None
    return logging.StreamHandler()


def init_logging(*, log_path: Optional[str] = None) -> Optional[logging.Handler]:
    """Attach the event handler to the ``anndata_ai`` logger.

    The handler goes on the package logger rather than the root logger, so a
    root configuration made earlier (``logging.basicConfig`` in a launcher)
    does not swallow ``LOG_PATH``. Returns the attached handler, if any.
    """
    global _INITIALIZED
    if _INITIALIZED:
        return None
    _LOGGER.setLevel(logging.INFO)
    handler = _event_handler(log_path)
    if handler is not None:
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        _LOGGER.addHandler(handler)
    _INITIALIZED = True
    return handler


def set_trace_id(trace_id: str):
    return _TRACE_ID_CTX.set(trace_id)


def reset_trace_id(token) -> None:
    _TRACE_ID_CTX.reset(token)


def get_trace_id() -> str:
    value = _TRACE_ID_CTX.get()
    return value or "unknown"


def summarize_text(text: str, limit: int = 400) -> str:
    if not text:
        return ""
    text = str(text)
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def _build_payload(event: str, fields: Dict[str, Any]) -> str:
    safe = {
        key: ("***" if key.lower() in _REDACTED_FIELDS else value)
        for key, value in fields.items()
    }
    payload = {"event": event, "trace_id": get_trace_id(), **safe}
    return json.dumps(payload, ensure_ascii=True, default=str)


def log_event(event: str, **fields: Any) -> None:
    _LOGGER.info(_build_payload(event, fields))


def log_error_event(event: str, **fields: Any) -> None:
    _LOGGER.error(_build_payload(event, fields))

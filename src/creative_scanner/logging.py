"""Structured logging helpers shared by the scanner entrypoints."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

UTC = getattr(datetime, "UTC", timezone.utc)
_LOGGER_NAME = "creative_scanner"
_configured = False
_base_context: dict[str, Any] = {}
# Scoped fields live in a ContextVar so concurrent scans keep separate request ids.
_scoped_context: ContextVar[dict[str, Any]] = ContextVar("creative_scanner_log_context", default={})


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the global logging formatter once."""

    global _configured
    if _configured:
        return
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    _configured = True


def set_global_context(**fields: Any) -> None:
    """Add persistent context fields that appear on every structured log."""

    _base_context.update({k: v for k, v in fields.items() if v is not None})


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Push a temporary logging context for the duration of the ``with`` block."""

    ctx = {**_scoped_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _scoped_context.set(ctx)
    try:
        yield
    finally:
        _scoped_context.reset(token)


def current_context() -> dict[str, Any]:
    merged: dict[str, Any] = {}
    merged.update(_base_context)
    merged.update(_scoped_context.get())
    return merged


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def jlog(level: str, /, **fields: Any) -> None:
    """Emit a structured JSON log payload under the ``creative_scanner`` logger."""

    log = logging.getLogger(_LOGGER_NAME)
    record = {"ts": _utcnow_iso(), **current_context(), **fields}
    getattr(log, level.lower())(json.dumps(record, ensure_ascii=False, sort_keys=True, default=str))


def scanlog(event: str, *, url: str, **kw: Any) -> None:
    """Shortcut for request-scoped JSON logging records."""

    jlog("info", event=event, url=url, **kw)


__all__ = ["configure_logging", "current_context", "jlog", "logging_context", "scanlog", "set_global_context"]

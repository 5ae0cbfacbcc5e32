from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
import json
import logging
from typing import Iterator
import uuid

TRACE_ID_MAX_LENGTH = 128

_trace_id: ContextVar[str | None] = ContextVar("release_trace_id", default=None)


def clean_trace_id(value: str | None) -> str | None:
    cleaned = (value or "").strip()[:TRACE_ID_MAX_LENGTH]
    return cleaned or None


def resolve_trace_id(value: str | None) -> str:
    """Use the caller's trace id when it carries one, otherwise start a new trace."""
    return clean_trace_id(value) or uuid.uuid4().hex


def current_trace_id() -> str | None:
    return _trace_id.get()


@contextmanager
def trace_scope(trace_id: str | None) -> Iterator[str]:
    resolved = resolve_trace_id(trace_id)
    token = _trace_id.set(resolved)
    try:
        yield resolved
    finally:
        _trace_id.reset(token)


def emit_structured_log(
    *,
    component: str,
    event: str,
    level: int = logging.INFO,
    program: str | None = None,
    **fields,
) -> None:
    record: dict[str, object | None] = dict(fields)
    record.update(
        timestamp_utc=datetime.now(timezone.utc).isoformat(),
        component=component,
        event=event,
        program=program,
        trace_id=current_trace_id(),
    )
    logging.getLogger(component).log(level, json.dumps(record, sort_keys=True, default=str))

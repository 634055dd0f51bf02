"""
W3C Trace Context middleware
Reads or starts a trace for each request so that logs and outbound catalog
calls share one correlation id.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

TRACEPARENT_PATTERN = re.compile(r'^00-([0-9a-f]{32})-([0-9a-f]{16})-[0-9a-f]{2}$')

trace_id_ctx: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
span_id_ctx: ContextVar[Optional[str]] = ContextVar("span_id", default=None)


def get_trace_id() -> Optional[str]:
    return trace_id_ctx.get()


def get_span_id() -> Optional[str]:
    return span_id_ctx.get()


def set_trace_context(trace_id: str, span_id: str) -> None:
    trace_id_ctx.set(trace_id)
    span_id_ctx.set(span_id)


def parse_traceparent(traceparent: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Return (trace_id, span_id) from a `00-{trace}-{span}-{flags}` header,
    or None when the header is absent, malformed or all zeros.
    """
    if not traceparent:
        return None
    match = TRACEPARENT_PATTERN.match(traceparent.strip().lower())
    if not match:
        return None
    trace_id, span_id = match.groups()
    if trace_id == '0' * 32 or span_id == '0' * 16:
        return None
    return trace_id, span_id


def new_trace_context() -> Tuple[str, str]:
    return uuid.uuid4().hex, uuid.uuid4().hex[:16]


def format_traceparent(trace_id: str, span_id: str) -> str:
    return f"00-{trace_id}-{span_id}-01"


def current_traceparent() -> Optional[str]:
    """traceparent header value for an outbound call made during this request"""
    trace_id = get_trace_id()
    if not trace_id:
        return None
    return format_traceparent(trace_id, get_span_id() or trace_id[:16])


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Continue the caller's trace, or start one, and echo it on the response"""

    async def dispatch(self, request: Request, call_next):
        trace_id, span_id = parse_traceparent(request.headers.get("traceparent")) or new_trace_context()
        set_trace_context(trace_id, span_id)
        request.state.trace_id = trace_id

        response = await call_next(request)

        response.headers["traceparent"] = format_traceparent(trace_id, span_id)
        response.headers["X-Trace-ID"] = trace_id
        return response

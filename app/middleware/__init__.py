"""
Middleware modules for the Review Syndication Service
"""

from .trace_context import TraceContextMiddleware, current_traceparent, get_span_id, get_trace_id

__all__ = ["TraceContextMiddleware", "current_traceparent", "get_span_id", "get_trace_id"]

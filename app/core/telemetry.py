"""
OpenTelemetry instrumentation

Spans are created locally for inbound requests, outbound catalog calls and
MongoDB operations. Context propagation and export are left to the Dapr sidecar.
"""

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

from app.core.logger import logger


def instrument_app(app):
    """Instrument the FastAPI app, the httpx catalog client and pymongo"""
    try:
        FastAPIInstrumentor.instrument_app(app)
        HTTPXClientInstrumentor().instrument()
        PymongoInstrumentor().instrument()
    except Exception as e:
        logger.error(
            f"Failed to instrument application: {e}",
            error=e,
            metadata={"event": "telemetry_instrumentation_failed"}
        )
        return

    logger.info(
        "OpenTelemetry instrumentation complete",
        metadata={
            "event": "telemetry_instrumented",
            "instrumented": ["fastapi", "httpx", "pymongo"],
        }
    )

"""
OpenTelemetry Tracing
=====================

Distributed tracing for request and batch flow visualization.
"""

import os
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from observability.logging_config import get_logger

logger = get_logger(__name__)


def setup_tracing(
    app: FastAPI,
    service_name: str = "dq-analysis-api",
    otlp_endpoint: Optional[str] = None,
    version: str = "0.1.0",
) -> None:
    """
    Set up OpenTelemetry tracing for the application.

    Args:
        app: FastAPI application instance
        service_name: Name of the service for traces
        otlp_endpoint: OTLP collector endpoint (default: from env; unset or
            "disabled" means spans are recorded but not exported)
        version: Service version attached to the resource
    """
    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "disabled")

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": version,
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    })

    provider = TracerProvider(resource=resource)

    if endpoint and endpoint != "disabled":
        try:
            otlp_exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
            provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        except Exception as e:
            logger.warning("otlp_exporter_setup_failed", endpoint=endpoint, error=str(e))

    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)


def get_tracer(name: str = __name__) -> trace.Tracer:
    """
    Get a tracer instance for creating spans.

    Without a configured provider this returns the API's no-op tracer, so
    library code can open spans unconditionally.

    Args:
        name: Name for the tracer (usually module name)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)

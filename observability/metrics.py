"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    multiprocess,
)

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

# Application info
APP_INFO = Info(
    "dq_analysis",
    "Data quality analysis application information",
    registry=REGISTRY,
)

# Per-table analysis metrics
TABLE_ANALYSES_TOTAL = Counter(
    "dq_table_analyses_total",
    "Total number of per-table analyses by outcome",
    ["status"],  # ok, failed
    registry=REGISTRY,
)

TABLE_ANALYSIS_DURATION = Histogram(
    "dq_table_analysis_duration_seconds",
    "Per-table analysis duration in seconds",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

# Remote model metrics
LLM_RETRIES_TOTAL = Counter(
    "dq_llm_retries_total",
    "Total retries of remote model calls by reason",
    ["reason"],  # rate_limit, timeout
    registry=REGISTRY,
)

RULE_MAPPING_FAILURES = Counter(
    "dq_rule_mapping_failures_total",
    "Global rule mapping calls that degraded to an empty map",
    registry=REGISTRY,
)

# Batch metrics
BATCH_DURATION = Histogram(
    "dq_batch_duration_seconds",
    "Whole-batch analysis duration in seconds",
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

TABLES_PER_BATCH = Histogram(
    "dq_tables_per_batch",
    "Number of tables per analysis batch",
    buckets=[1, 2, 5, 10, 20, 50, 100],
    registry=REGISTRY,
)

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 30.0, 120.0],
    registry=REGISTRY,
)

ACTIVE_BATCHES = Gauge(
    "dq_active_batches",
    "Number of analysis batches currently being processed",
    registry=REGISTRY,
)


def setup_metrics(app: FastAPI, version: str = "0.1.0", environment: str = "development") -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Application version reported in the info metric
        environment: Deployment environment name
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
    })

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_analyze_endpoint = request.url.path == "/api/v1/analyze"
        if is_analyze_endpoint:
            ACTIVE_BATCHES.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_analyze_endpoint:
                ACTIVE_BATCHES.dec()


def track_table_analysis(succeeded: bool, duration_seconds: float) -> None:
    """
    Track metrics for one finished table analysis.

    Args:
        succeeded: Whether the table produced a validated result
        duration_seconds: Time spent on the table, retries included
    """
    TABLE_ANALYSES_TOTAL.labels(status="ok" if succeeded else "failed").inc()
    TABLE_ANALYSIS_DURATION.observe(duration_seconds)


def track_batch_metrics(table_count: int, duration_seconds: float) -> None:
    """
    Track metrics for a completed analysis batch.

    Args:
        table_count: Number of tables in the batch
        duration_seconds: Total processing time
    """
    TABLES_PER_BATCH.observe(table_count)
    BATCH_DURATION.observe(duration_seconds)


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Handle multiprocess mode if using gunicorn
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        metrics = generate_latest(registry)
    except ValueError:
        # Not in multiprocess mode
        metrics = generate_latest(REGISTRY)

    return Response(
        content=metrics,
        media_type=CONTENT_TYPE_LATEST,
    )

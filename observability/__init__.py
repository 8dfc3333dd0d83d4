"""
Observability Module
====================

Full-stack observability: metrics, tracing, and structured logging.
"""

from observability.metrics import setup_metrics, track_batch_metrics, track_table_analysis
from observability.tracing import get_tracer, setup_tracing
from observability.logging_config import bind_context, clear_context, setup_logging, get_logger

__all__ = [
    "setup_metrics",
    "track_batch_metrics",
    "track_table_analysis",
    "setup_tracing",
    "get_tracer",
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]

from .registry import (
    TAIL_BACKOFF_TOTAL,
    TAIL_BYTES_TOTAL,
    TAIL_EVENTS_TOTAL,
    TAIL_RECONNECTS_TOTAL,
    TAIL_WORKERS_ALIVE,
    MetricsRegistry,
    metrics_registry,
)

__all__ = [
    "TAIL_BACKOFF_TOTAL",
    "TAIL_BYTES_TOTAL",
    "TAIL_EVENTS_TOTAL",
    "TAIL_RECONNECTS_TOTAL",
    "TAIL_WORKERS_ALIVE",
    "MetricsRegistry",
    "metrics_registry",
]

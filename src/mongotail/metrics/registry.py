"""
Prometheus metrics for the tail workers.

Registered on the global REGISTRY at import time; ``tailctl tail --metrics-port``
exposes them over HTTP.
"""

from prometheus_client import Counter, Gauge


# --- Tail Metrics ---

TAIL_EVENTS_TOTAL = Counter(
    "mongotail_events_total",
    "Total number of documents forwarded to the sink",
    ["database", "collection"],
)

TAIL_BYTES_TOTAL = Counter(
    "mongotail_bytes_total",
    "Total BSON bytes of forwarded documents",
    ["database", "collection"],
)

TAIL_RECONNECTS_TOTAL = Counter(
    "mongotail_reconnects_total",
    "Tailable cursors reopened after a failure",
    ["database", "collection", "reason"],
)

TAIL_BACKOFF_TOTAL = Counter(
    "mongotail_backoff_total",
    "Backoff sleeps taken, per failure axis",
    ["axis"],
)

TAIL_WORKERS_ALIVE = Gauge(
    "mongotail_workers_alive",
    "Number of tail worker threads currently running",
)


class MetricsRegistry:
    """Centralized access to the tailer's metrics."""

    events_total = TAIL_EVENTS_TOTAL
    bytes_total = TAIL_BYTES_TOTAL
    reconnects_total = TAIL_RECONNECTS_TOTAL
    backoff_total = TAIL_BACKOFF_TOTAL
    workers_alive = TAIL_WORKERS_ALIVE


# Singleton instance
metrics_registry = MetricsRegistry()

"""
Prometheus metrics for proxied storage operations.

Every operation (``export``, ``get``, ``get_next``) counts one ``started``
and then exactly one of ``completed`` / ``errored``. The orchestrator only
sees the ``OperationCounters`` sink; this module owns the actual counters.

Metrics are exposed via ``/metrics`` in the FastAPI app.
"""
from prometheus_client import Counter

from source_proxy.proxy.interfaces import OperationCounters

# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------

OPERATIONS_TOTAL = Counter(
    "source_proxy_operations_total",
    "Proxied storage operations by operation and outcome",
    ["operation", "outcome"],
)

OPERATIONS = ("export", "get", "get_next")
OUTCOMES = ("started", "completed", "errored")


class PrometheusOperationCounters(OperationCounters):
    """``OperationCounters`` sink backed by ``OPERATIONS_TOTAL``."""

    def __init__(self, counter: Counter = OPERATIONS_TOTAL):
        self.counter = counter
        # Pre-create label sets so all series are scraped as 0 before traffic
        for operation in OPERATIONS:
            for outcome in OUTCOMES:
                self.counter.labels(operation=operation, outcome=outcome)

    def increment(self, operation: str, outcome: str) -> None:
        self.counter.labels(operation=operation, outcome=outcome).inc()

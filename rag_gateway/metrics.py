"""
Upstream Call Metrics
=====================
Prometheus metrics for calls from the gateway to the workflow engine.

Tracks:
- Upstream latency (histogram)
- Upstream calls by outcome
- Calls currently in flight

Usage:
    from rag_gateway.metrics import get_metrics_app
    app.mount("/metrics", get_metrics_app())
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, make_asgi_app

GATEWAY_REGISTRY = CollectorRegistry()

UPSTREAM_REQUEST_LATENCY = Histogram(
    name="rag_upstream_request_duration_seconds",
    documentation="Time spent waiting on workflow engine webhooks",
    labelnames=["path", "outcome"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=GATEWAY_REGISTRY,
)

UPSTREAM_REQUEST_TOTAL = Counter(
    name="rag_upstream_requests_total",
    documentation="Total number of workflow engine webhook calls",
    labelnames=["path", "outcome"],
    registry=GATEWAY_REGISTRY,
)

UPSTREAM_REQUESTS_INFLIGHT = Gauge(
    name="rag_upstream_requests_inflight",
    documentation="Workflow engine webhook calls currently in progress",
    labelnames=["path"],
    registry=GATEWAY_REGISTRY,
)


def outcome_label(status_code: int) -> str:
    """Collapse an HTTP status into its class, e.g. 503 -> "5xx"."""
    return f"{status_code // 100}xx"


def record_upstream_call(path: str, outcome: str, duration_seconds: float) -> None:
    UPSTREAM_REQUEST_LATENCY.labels(path=path, outcome=outcome).observe(duration_seconds)
    UPSTREAM_REQUEST_TOTAL.labels(path=path, outcome=outcome).inc()


def get_metrics_app():
    """ASGI app serving the gateway registry in Prometheus text format."""
    return make_asgi_app(registry=GATEWAY_REGISTRY)

"""
Prometheus metrics for the POS service.

Two groups of series are exported on /metrics:
- HTTP traffic per endpoint (count, latency, requests in progress)
- sale outcomes (committed sales, their value, rejections by error class)

Under Gunicorn set PROMETHEUS_MULTIPROC_DIR so every worker writes to the
shared directory and the endpoint aggregates them.
Keep /metrics on the internal network; it is not authenticated.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY

metrics_bp = Blueprint('metrics', __name__)

MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    # Series are written to the shared directory, not to a registry
    _series_registry = None
else:
    registry = REGISTRY
    _series_registry = registry

# Endpoints that are scraped or polled and would drown out sale traffic
UNTRACKED_ENDPOINTS = frozenset({'metrics.metrics', 'main.health'})

POS_LATENCY_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests answered, by endpoint and status',
    ['method', 'endpoint', 'http_status'],
    registry=_series_registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'Time to answer an HTTP request',
    ['method', 'endpoint'],
    registry=_series_registry,
    buckets=POS_LATENCY_BUCKETS
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'HTTP requests currently being answered',
    registry=_series_registry,
    multiprocess_mode='livesum'
)

pos_sales_completed_total = Counter(
    'pos_sales_completed_total',
    'Sales committed by the POS',
    registry=_series_registry
)

pos_sales_value_total = Counter(
    'pos_sales_value_total',
    'Sum of committed sale totals in the smallest currency unit',
    registry=_series_registry
)

pos_sales_rejected_total = Counter(
    'pos_sales_rejected_total',
    'Sales rejected before or during the transaction',
    ['reason'],
    registry=_series_registry
)


def record_sale_completed(result):
    """Count a committed sale and add its total."""
    pos_sales_completed_total.inc()
    pos_sales_value_total.inc(result.total)


def record_sale_rejected(error):
    pos_sales_rejected_total.labels(reason=type(error).__name__).inc()


def _is_tracked() -> bool:
    return request.endpoint is not None and request.endpoint not in UNTRACKED_ENDPOINTS


def setup_metrics_instrumentation(app):
    """Time and count every routed request except scrapes and health checks."""

    @app.before_request
    def start_request_timer():
        if _is_tracked():
            g.metrics_started_at = time.perf_counter()
            http_requests_in_flight.inc()

    @app.after_request
    def observe_response(response):
        started_at = g.get('metrics_started_at')
        if started_at is not None:
            http_request_duration_seconds.labels(
                method=request.method,
                endpoint=request.endpoint
            ).observe(time.perf_counter() - started_at)
            http_requests_total.labels(
                method=request.method,
                endpoint=request.endpoint,
                http_status=response.status_code
            ).inc()
        return response

    @app.teardown_request
    def finish_request(exception=None):
        # Runs even when the view raised, so the gauge cannot drift upwards
        if g.pop('metrics_started_at', None) is not None:
            http_requests_in_flight.dec()


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus scrape endpoint."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)

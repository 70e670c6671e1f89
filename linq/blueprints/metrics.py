"""
Prometheus metrics blueprint.

Request latency per endpoint, envelopes sent by kind (data / errors) and
status, and contention on the cart keys. Served at /metrics; keep it on the
internal network.
"""
from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import time

metrics_bp = Blueprint('metrics', __name__)

http_request_duration_seconds = Histogram(
    'linq_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

api_envelopes_total = Counter(
    'linq_api_envelopes_total',
    'Response envelopes sent',
    ['kind', 'http_status']
)

cart_write_retries_total = Counter(
    'linq_cart_write_retries_total',
    'Cart writes retried after a concurrent change to the same key'
)

cart_write_conflicts_total = Counter(
    'linq_cart_write_conflicts_total',
    'Cart writes abandoned after running out of retries'
)


def record_envelope(kind: str, status: int) -> None:
    api_envelopes_total.labels(kind=kind, http_status=status).inc()


def setup_metrics_instrumentation(app):
    """Time every request by endpoint."""

    @app.before_request
    def start_timer():
        g._request_started = time.perf_counter()

    @app.after_request
    def observe_latency(response):
        started = g.pop('_request_started', None)
        if started is not None:
            http_request_duration_seconds.labels(
                method=request.method,
                endpoint=request.endpoint or 'unknown'
            ).observe(time.perf_counter() - started)
        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

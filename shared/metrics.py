"""Prometheus metrics for client observability.

Counters and histograms around vendor calls, authentication and the HTTP surface.
Exposed via /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, make_asgi_app

# Vendor counters
vendor_api_errors_total = Counter(
    "vendor_api_errors_total",
    "Total failed LibreLinkUp calls by error kind",
    ["endpoint", "kind"],
)

authentications_total = Counter(
    "authentications_total",
    "Total session authentications",
    ["outcome"],  # outcome: success, login_failed, no_patient, error
)

readings_returned_total = Counter(
    "readings_returned_total",
    "Total glucose readings returned to callers",
)

# API counters
api_requests_total = Counter(
    "api_requests_total",
    "Total API requests",
    ["endpoint", "method", "status_code"],
)

# Histograms
vendor_api_duration_seconds = Histogram(
    "vendor_api_duration_seconds",
    "Duration of LibreLinkUp calls",
    ["endpoint"],
)

api_response_duration_seconds = Histogram(
    "api_response_duration_seconds",
    "Duration of API responses",
    ["endpoint"],
)


def create_metrics_app():
    """Create ASGI app for /metrics endpoint."""
    return make_asgi_app()

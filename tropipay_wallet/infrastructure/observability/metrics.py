"""Prometheus metrics for remote API health, cache fallbacks and transfer outcomes"""

from prometheus_client import Counter, Histogram

from tropipay_wallet.domain.constants import endpoint_template

# Remote API metrics
remote_api_latency_histogram = Histogram(
    "tropipay_api_latency_seconds",
    "TropiPay API response time",
    ["method", "endpoint"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

remote_api_failures_counter = Counter(
    "tropipay_api_failures_total",
    "Failed TropiPay API calls",
    ["kind"],  # error class name
)

# Session metrics
reauthentication_counter = Counter(
    "tropipay_reauthentications_total",
    "Re-authentications triggered by an expired token",
)

# Cache metrics
cache_fallback_counter = Counter(
    "wallet_cache_fallbacks_total",
    "Reads served from the local cache after a remote failure",
    ["resource"],  # accounts | beneficiaries
)

# Transfer metrics
transfer_counter = Counter(
    "wallet_transfers_total",
    "Transfer workflow outcomes",
    ["outcome"],  # simulated | executed | failed
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_remote_call(method: str, path: str, duration: float, error: Exception | None = None) -> None:
    # Label by template so ids do not create new series
    remote_api_latency_histogram.labels(method=method, endpoint=endpoint_template(path)).observe(duration)
    if error is not None:
        remote_api_failures_counter.labels(kind=type(error).__name__).inc()


def record_transfer(outcome: str) -> None:
    transfer_counter.labels(outcome=outcome).inc()

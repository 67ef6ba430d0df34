"""Prometheus metrics for the scan engine."""

from prometheus_client import Counter, Histogram, Info

APP_INFO = Info("geoscan", "GEO visibility scan engine info")
APP_INFO.info({"version": "1.0.0", "name": "geoscan"})

PROVIDER_CALLS = Counter(
    "geoscan_provider_calls_total",
    "Provider calls by outcome",
    ["provider", "status"],  # status: ok | timeout | http | rate_limited | malformed | transport | unexpected
)

PROVIDER_LATENCY = Histogram(
    "geoscan_provider_latency_seconds",
    "Provider call duration in seconds",
    ["provider"],
    buckets=[0.25, 0.5, 1, 2.5, 5, 10, 20, 30, 60],
)

SCAN_RUNS = Counter(
    "geoscan_scans_total",
    "Prompt scans by terminal state",
    ["status"],  # succeeded | fallback_succeeded | failed
)

METRICS_SAVES = Counter(
    "geoscan_metrics_saves_total",
    "Visibility metrics persistence attempts",
    ["status"],  # ok | error
)

"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests_total = Counter(
    "edu_people_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "edu_people_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

directory_operations_total = Counter(
    "edu_people_directory_operations_total",
    "Directory store operations by outcome",
    ["operation", "outcome"],
)

directory_scan_pages_total = Counter(
    "edu_people_directory_scan_pages_total",
    "DynamoDB scan pages fetched while listing people",
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)


def observe_operation(operation: str, outcome: str) -> None:
    directory_operations_total.labels(operation=operation, outcome=outcome).inc()

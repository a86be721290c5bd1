"""Monitoring and metrics instrumentation for fetch-retry.

Exports Prometheus metrics for operational monitoring and alerting.
"""

from fetch_retry.monitoring.metrics import (
    fetch_attempts_total,
    fetch_calls_total,
    fetch_retries_total,
    fetch_retry_delay_seconds,
)

__all__ = [
    "fetch_attempts_total",
    "fetch_retries_total",
    "fetch_calls_total",
    "fetch_retry_delay_seconds",
]

"""Prometheus metrics for the retry engine.

Metrics register on the default prometheus_client registry; expose them
with ``prometheus_client.start_http_server`` or the host application's
/metrics endpoint. Alert rules worth configuring:
- fetch_retries_total (a rising rate means an unstable upstream)
- fetch_calls_total{result="rejected"} (calls that failed after all retries)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

fetch_attempts_total = Counter(
    "fetch_attempts_total",
    "Total attempts issued by outcome",
    ["outcome"],
)
"""
Attempts counter by outcome.

Labels:
- outcome: response (request returned), error (request raised),
  timeout (attempt aborted by the attempt timeout)
"""

fetch_retries_total = Counter(
    "fetch_retries_total",
    "Total retries scheduled",
)

# === Call Metrics ===

fetch_calls_total = Counter(
    "fetch_calls_total",
    "Total calls settled by result",
    ["result"],
)
"""
Settled calls counter.

Labels:
- result: resolved (a response was returned), rejected (an error was raised)
"""

fetch_retry_delay_seconds = Histogram(
    "fetch_retry_delay_seconds",
    "Delay applied before each retry",
    buckets=[0, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

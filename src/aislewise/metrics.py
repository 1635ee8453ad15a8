"""Prometheus metrics definitions for Aislewise."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "aislewise_http_requests_total",
    "Total number of HTTP requests processed by the Aislewise API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "aislewise_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Aislewise API",
    ["method", "path"],
)

GENERATION_ATTEMPTS = Counter(
    "aislewise_generation_attempts_total",
    "Model attempts made by the generation pipeline by stage and outcome",
    ["stage", "outcome"],
)

GENERATION_RESULTS = Counter(
    "aislewise_generation_results_total",
    "Generation requests completed, labelled by the stage that produced the data",
    ["stage"],
)

UPSTREAM_LATENCY = Histogram(
    "aislewise_upstream_call_duration_seconds",
    "Latency of calls to the text generation provider",
    ["model"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "GENERATION_ATTEMPTS",
    "GENERATION_RESULTS",
    "UPSTREAM_LATENCY",
]

"""Prometheus metrics for delegated calls and schema composition."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Custom registry so tests and multiple app instances do not collide with the default one
REGISTRY = CollectorRegistry()

# Covers outbound call latencies from 5ms to 30s
DELEGATION_LATENCY_BUCKETS = (
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
)

delegated_calls_total = Counter(
    "gateway_delegated_calls_total",
    "Total outbound calls made on behalf of a field resolution. "
    "Labelled by origin (monolith, function) and outcome.",
    ["origin", "status"],  # status: success, error
    registry=REGISTRY,
)

delegated_call_duration_seconds = Histogram(
    "gateway_delegated_call_duration_seconds",
    "Duration of outbound delegated calls in seconds.",
    ["origin"],
    buckets=DELEGATION_LATENCY_BUCKETS,
    registry=REGISTRY,
)

schema_composed_fields = Gauge(
    "gateway_schema_composed_fields",
    "Number of fields in the composed schema, by the tier that owns them.",
    ["tier"],
    registry=REGISTRY,
)

"""Prometheus metrics for the gateway."""

from gateway_service.infra.metrics.prometheus import (
    REGISTRY,
    delegated_call_duration_seconds,
    delegated_calls_total,
    schema_composed_fields,
)

__all__ = [
    "REGISTRY",
    "delegated_call_duration_seconds",
    "delegated_calls_total",
    "schema_composed_fields",
]

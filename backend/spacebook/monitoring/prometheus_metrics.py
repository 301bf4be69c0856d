"""
Prometheus metrics module for the booking core.

Service operations feed these through the @measure_operation decorator, and
the per-resource booking lock reports its acquire/release outcomes here.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "spacebook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "spacebook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "spacebook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_lock_events_total = Counter(
    "spacebook_booking_lock_events_total",
    "Per-resource booking lock acquire/release outcomes",
    ["action", "outcome"],
    registry=REGISTRY,
)

booking_outcomes_total = Counter(
    "spacebook_booking_outcomes_total",
    "Typed outcomes returned by lifecycle and ledger operations",
    ["operation", "kind"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _lock: Lock = Lock()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'ReservationService')
            operation: Operation/method name (e.g., 'create_reservation')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_booking_lock(action: str, outcome: str) -> None:
        """Count lock events, e.g. ('acquire', 'success') or ('acquire', 'timeout')."""
        booking_lock_events_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_outcome(operation: str, kind: str) -> None:
        booking_outcomes_total.labels(operation=operation, kind=kind).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        with PrometheusMetrics._lock:
            return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()


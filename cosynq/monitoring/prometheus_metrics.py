"""
Prometheus metrics for the Cosynq booking backend.

Service timings come from the ``@BaseService.measure_operation`` decorator;
booking outcomes are counted where the orchestrator decides them.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so tests can import the module repeatedly
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "cosynq_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "cosynq_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "cosynq_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

capacity_checks_total = Counter(
    "cosynq_capacity_checks_total",
    "Capacity checks by policy and outcome",
    ["policy", "outcome"],  # outcome: available | unavailable | not_found
    registry=REGISTRY,
)

booking_rejections_total = Counter(
    "cosynq_booking_rejections_total",
    "Booking requests rejected by reason code",
    ["reason"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade over the module-level collectors."""

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
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
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
    def record_capacity_check(policy: str, outcome: str) -> None:
        capacity_checks_total.labels(policy=policy, outcome=outcome).inc()

    @staticmethod
    def record_booking_rejection(reason: str) -> None:
        booking_rejections_total.labels(reason=reason).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()

# backend/spacebook/routes/v1/prometheus.py
"""
Prometheus metrics endpoint for monitoring infrastructure.

This is a PUBLIC endpoint following standard Prometheus practices. It
exposes metrics collected from the @measure_operation decorators and the
booking lock.
"""

from fastapi import APIRouter, Response

from ...monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics/prometheus", include_in_schema=False)
def get_prometheus_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )

"""Prometheus 监控模块。"""

from statusgate.monitoring.metrics import (
    api_call_duration_seconds,
    http_request_duration_seconds,
    http_requests_total,
)

__all__ = [
    "http_requests_total",
    "http_request_duration_seconds",
    "api_call_duration_seconds",
]

"""Prometheus 指标定义。"""

from prometheus_client import Counter, Histogram

# 标签: method (HTTP 方法), path (标准化后的路径), status (HTTP 状态码)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)

# 标签: endpoint (命中的端点前缀)
api_call_duration_seconds = Histogram(
    "api_call_duration_seconds",
    "API handler duration in seconds",
    ["endpoint"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

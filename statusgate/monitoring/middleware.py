"""Prometheus 监控中间件。"""

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from statusgate.api.formats import detect_format
from statusgate.monitoring import metrics

_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


class PrometheusMiddleware(BaseHTTPMiddleware):
    """记录每个 HTTP 请求的计数与耗时。"""

    def __init__(
        self,
        app: ASGIApp,
        excluded_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.excluded_paths = set(excluded_paths or ["/metrics"])

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        path = self._normalize_path(request.url.path)
        metrics.http_requests_total.labels(
            method=request.method,
            path=path,
            status=str(response.status_code),
        ).inc()
        metrics.http_request_duration_seconds.labels(
            method=request.method,
            path=path,
        ).observe(duration)

        return response

    def _normalize_path(self, path: str) -> str:
        """标准化路径，避免标签基数膨胀。

        去掉格式后缀并把数字段替换为占位符，
        如 /api/statuses/show/123.json -> /api/statuses/show/{id}
        """
        _, path = detect_format(path)
        return _NUMERIC_SEGMENT.sub("/{id}", path)

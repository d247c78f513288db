"""Prometheus 监控路由。"""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from statusgate.config import get_settings

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus 抓取端点，监控关闭时返回说明文本。"""
    if not get_settings().prometheus_enabled:
        return Response(
            content=b"# Monitoring is disabled\n",
            media_type=CONTENT_TYPE_LATEST,
        )

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

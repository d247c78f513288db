"""FastAPI 应用入口。"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from statusgate.api import routes as api_routes
from statusgate.config import get_settings
from statusgate.database.async_session import dispose_async_engine, get_async_session_maker
from statusgate.database.models import Base
from statusgate.database.models import get_engine as engine
from statusgate.monitoring import routes as monitoring_routes
from statusgate.monitoring.middleware import PrometheusMiddleware

# 注册全部 ORM 模型到 Base.metadata
from statusgate.status.infrastructure import models as status_models  # noqa: F401

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001 - app 参数是 FastAPI 要求的
    """应用生命周期管理：启动时建表，关闭时释放连接池。"""
    configure_logging()
    Base.metadata.create_all(engine())
    logger.info(f"{get_settings().site_name} 已启动")

    yield

    await dispose_async_engine()


app = FastAPI(
    title="Statusgate",
    description="Twitter/StatusNet 兼容的状态 API 网关",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if get_settings().prometheus_enabled:
    app.add_middleware(PrometheusMiddleware)


@app.get("/health")
async def health_check():
    """健康检查，始终返回 HTTP 200，数据库不可用时状态为 degraded。"""
    components = {}
    try:
        async with get_async_session_maker()() as session:
            await session.execute(text("SELECT 1"))
        components["database"] = {"status": "healthy"}
    except Exception as e:
        logger.warning(f"数据库健康检查失败: {e}")
        components["database"] = {"status": "unhealthy", "error": str(e)}

    overall = "healthy"
    if any(c["status"] == "unhealthy" for c in components.values()):
        overall = "degraded"

    return {"status": overall, "components": components}


app.include_router(api_routes.router)
app.include_router(monitoring_routes.router)


def main():
    """开发服务器入口。"""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "statusgate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

"""API 路由。

把 /api/ 下的所有请求交给分发器处理。
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasic, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from statusgate.api.endpoints import (
    account,
    activities,
    direct_messages,
    favorites,
    statuses,
    users,
)
from statusgate.api.registry import Dispatcher, EndpointRegistry
from statusgate.auth.gate import ApiCredentials, AuthGate
from statusgate.auth.services.auth_service import AuthService
from statusgate.auth.services.session_cache import SessionCache
from statusgate.config import get_settings
from statusgate.database.async_session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

ENDPOINT_MODULES = (account, statuses, favorites, users, direct_messages, activities)

# 认证方案，缺少或格式不符时返回 None，由分发器决定是否质询
basic_scheme = HTTPBasic(auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)

_dispatcher: Dispatcher | None = None


def build_registry() -> EndpointRegistry:
    """注册全部端点。"""
    registry = EndpointRegistry()
    for module in ENDPOINT_MODULES:
        module.register(registry)
    logger.debug(f"已注册 {len(registry)} 个端点路径")
    return registry


def get_dispatcher() -> Dispatcher:
    """获取分发器单例（首次调用时构建注册表与认证入口）。"""
    global _dispatcher
    if _dispatcher is None:
        settings = get_settings()
        gate = AuthGate(
            AuthService(),
            SessionCache(settings.api_session_ttl),
            realm=settings.auth_realm,
        )
        _dispatcher = Dispatcher(build_registry(), gate)
    return _dispatcher


def reset_dispatcher() -> None:
    """丢弃分发器单例及其会话缓存，主要用于测试。"""
    global _dispatcher
    _dispatcher = None


async def get_api_credentials(
    request: Request,
    bearer: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> ApiCredentials:
    """解析请求携带的 Bearer 与 Basic 凭据。"""
    try:
        basic = await basic_scheme(request)
    except HTTPException:
        # 无法解码的 Basic 头按未提供处理
        logger.debug("Basic 认证头格式不正确")
        basic = None
    return ApiCredentials(
        authorization=request.headers.get("authorization"),
        basic=basic,
        bearer=bearer,
    )


@router.api_route(
    "/{api_path:path}",
    methods=["GET", "POST", "PUT", "DELETE"],
    include_in_schema=False,
)
async def api_call(
    api_path: str,
    request: Request,
    credentials: ApiCredentials = Depends(get_api_credentials),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    """API 入口。"""
    form: dict[str, str] = {}
    if request.method in ("POST", "PUT", "DELETE"):
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            submitted = await request.form()
            form = {key: value for key, value in submitted.items() if isinstance(value, str)}

    return await get_dispatcher().dispatch(
        method=request.method,
        api_path=api_path,
        query_string=request.url.query,
        query=dict(request.query_params),
        form=form,
        headers={key.lower(): value for key, value in request.headers.items()},
        credentials=credentials,
        session=session,
        settings=get_settings(),
    )

"""端点注册表与分发器。

启动时构建路径前缀到处理器的映射，请求时按最长前缀匹配，
检查方法与认证后调用处理器，并把结果或错误编码为响应。
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from fastapi import Response
from sqlalchemy.ext.asyncio import AsyncSession

from statusgate.api import formats
from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.errors import (
    HTTPFault,
    InternalServerError,
    MethodNotAllowed,
    NotImplementedFault,
)
from statusgate.auth.gate import ApiCredentials, AuthGate
from statusgate.config import Settings
from statusgate.monitoring import metrics
from statusgate.status.markup import MarkupRenderer

logger = logging.getLogger(__name__)

Handler = Callable[[RequestContext], Awaitable[ApiResult | None]]

# 允许的方法集合
ANY = frozenset({"*"})
GET = frozenset({"GET"})
POST = frozenset({"POST", "PUT"})
DELETE = frozenset({"POST", "DELETE"})

VERSION_PREFIX = "1.1/"


@dataclass(frozen=True)
class Endpoint:
    """已注册的端点。"""

    pattern: str
    handler: Handler
    auth: bool
    methods: frozenset[str]

    def allows(self, method: str) -> bool:
        return "*" in self.methods or method.upper() in self.methods


class EndpointRegistry:
    """端点注册表。"""

    def __init__(self) -> None:
        self._endpoints: list[Endpoint] = []

    def register(
        self,
        pattern: str,
        handler: Handler,
        auth: bool = False,
        methods: Iterable[str] = ANY,
    ) -> None:
        """注册端点，同时注册带版本前缀的别名。

        Args:
            pattern: 路径前缀（不含 api/），如 statuses/show
            handler: 处理器
            auth: 是否需要登录
            methods: 允许的 HTTP 方法，"*" 表示任意
        """
        allowed = frozenset(method.upper() for method in methods)
        pattern = pattern.strip("/")
        for path in (pattern, VERSION_PREFIX + pattern):
            self._endpoints.append(Endpoint(path, handler, auth, allowed))

    def endpoint(
        self,
        pattern: str,
        auth: bool = False,
        methods: Iterable[str] = ANY,
    ) -> Callable[[Handler], Handler]:
        """注册端点的装饰器形式。"""

        def decorator(handler: Handler) -> Handler:
            self.register(pattern, handler, auth, methods)
            return handler

        return decorator

    def match(self, path: str) -> Endpoint | None:
        """按最长前缀匹配端点，长度相同时先注册的优先。"""
        best: Endpoint | None = None
        for endpoint in self._endpoints:
            if path.startswith(endpoint.pattern):
                if best is None or len(endpoint.pattern) > len(best.pattern):
                    best = endpoint
        return best

    def __len__(self) -> int:
        return len(self._endpoints)

    def __contains__(self, pattern: str) -> bool:
        return any(endpoint.pattern == pattern for endpoint in self._endpoints)


def split_path_args(path: str, pattern: str) -> list[str]:
    """端点路径之后的参数。"""
    return [segment for segment in path[len(pattern):].split("/") if segment]


class Dispatcher:
    """API 分发器。"""

    def __init__(
        self,
        registry: EndpointRegistry,
        gate: AuthGate,
        renderer: MarkupRenderer | None = None,
    ) -> None:
        self.registry = registry
        self.gate = gate
        self.renderer = renderer

    async def dispatch(
        self,
        *,
        method: str,
        api_path: str,
        query_string: str,
        query: dict[str, str],
        form: dict[str, str],
        headers: dict[str, str],
        session: AsyncSession,
        settings: Settings,
        credentials: ApiCredentials | None = None,
    ) -> Response:
        """处理一次 API 调用。

        Args:
            method: HTTP 方法
            api_path: api/ 之后的路径，如 statuses/show/12.json
            query_string: 原始查询字符串
            query: GET 参数
            form: POST 参数
            headers: 请求头（键为小写）
            session: 数据库会话
            settings: 配置
            credentials: 已解析的认证凭据

        Returns:
            Response: 编码后的响应
        """
        credentials = credentials or ApiCredentials()
        fmt, path = formats.detect_format(api_path.strip("/"))
        request_uri = f"api/{api_path}" + (f"?{query_string}" if query_string else "")

        context = RequestContext(
            method=method.upper(),
            path=path,
            request_uri=request_uri,
            query=query,
            form=form,
            headers=headers,
            credentials=credentials,
            fmt=fmt,
            session=session,
            settings=settings,
            api_session=self.gate.current_session(credentials),
            renderer=self.renderer,
        )

        try:
            result = await self._call(context)
        except HTTPFault as e:
            logger.warning(f"API 错误 {e.status_line}: {request_uri} - {e.error}")
            # 出错的请求不提交已刷新的写入
            await session.rollback()
            return formats.render_error(e, fmt, request_uri)
        except Exception:
            logger.exception(f"API 调用异常: {request_uri}")
            await session.rollback()
            return formats.render_error(InternalServerError(), fmt, request_uri)

        return formats.render(result, fmt, callback=query.get("callback"))

    async def _call(self, context: RequestContext) -> ApiResult:
        endpoint = self.registry.match(context.path)
        if endpoint is None:
            logger.info(f"API call not implemented: {context.request_uri}")
            raise NotImplementedFault()

        if not endpoint.allows(context.method):
            raise MethodNotAllowed()

        context.pattern = endpoint.pattern
        context.path_args = split_path_args(context.path, endpoint.pattern)

        if endpoint.auth and context.user is None:
            context.api_session = await self.gate.login(context.credentials, context.users)

        username = context.user.nickname if context.user else ""
        logger.info(f"API call for {username}: {context.request_uri}")
        logger.debug(f"API parameters: {dict(context.params)}")

        start = time.perf_counter()
        result = await endpoint.handler(context)
        duration = time.perf_counter() - start

        logger.debug(f"API call duration: {duration:.2f}\t{context.request_uri}")
        metrics.api_call_duration_seconds.labels(endpoint=endpoint.pattern).observe(duration)

        if result is None:
            # 处理器未抛出错误却没有返回结果
            raise InternalServerError()
        return result

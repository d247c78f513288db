"""API 认证入口。

按顺序尝试签名请求令牌（Bearer JWT）与 Basic 凭据，
成功后在会话缓存中记录带 allow_api 标记的会话。
凭据由路由层通过 fastapi.security 解析后传入。
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import jwt
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasicCredentials

from statusgate.api.errors import Unauthorized
from statusgate.auth.domain.models import ApiSession, UserDomain
from statusgate.auth.infrastructure.repository import UserRepository
from statusgate.auth.services.auth_service import AuthService
from statusgate.auth.services.session_cache import SessionCache

logger = logging.getLogger(__name__)

LOGIN_REQUIRED = "This API requires login"

LoggedInListener = Callable[[UserDomain], Awaitable[None] | None]


class ExternalAuthenticator(Protocol):
    """外部认证插件，认证成功返回账户，否则返回 None。"""

    async def authenticate(self, username: str, password: str) -> UserDomain | None: ...


@dataclass(frozen=True)
class ApiCredentials:
    """一次请求携带的认证信息。

    authorization 是原始认证头，仅用作会话缓存的键。
    """

    authorization: str | None = None
    basic: HTTPBasicCredentials | None = None
    bearer: HTTPAuthorizationCredentials | None = None

    @property
    def present(self) -> bool:
        return self.basic is not None or self.bearer is not None


def login_name(username: str) -> str:
    """登录名，user@domain 形式只取 user 部分。"""
    local_part = username.split("@", 1)[0]
    return (local_part or username).strip()


class AuthGate:
    """API 认证入口。"""

    def __init__(
        self,
        auth_service: AuthService,
        sessions: SessionCache,
        realm: str = "Statusgate",
    ) -> None:
        self.auth_service = auth_service
        self.sessions = sessions
        self.realm = realm
        self.authenticators: list[ExternalAuthenticator] = []
        self._listeners: list[LoggedInListener] = []

    def add_authenticator(self, authenticator: ExternalAuthenticator) -> None:
        """注册外部认证插件，先于本地密码校验执行。"""
        self.authenticators.append(authenticator)

    def on_logged_in(self, listener: LoggedInListener) -> LoggedInListener:
        """注册登录成功事件监听器，可作装饰器使用。"""
        self._listeners.append(listener)
        return listener

    def challenge(self) -> Unauthorized:
        return Unauthorized(LOGIN_REQUIRED, realm=self.realm)

    def current_session(self, credentials: ApiCredentials) -> ApiSession | None:
        """仅从缓存取会话，不做认证。"""
        if not credentials.present or not credentials.authorization:
            return None
        return self.sessions.get(credentials.authorization)

    @staticmethod
    def api_user(session: ApiSession | None) -> UserDomain | None:
        """当前可代表其调用 API 的账户；未显式允许 API 的会话不算。"""
        if session is None or not session.allow_api:
            return None
        return session.user

    async def login(self, credentials: ApiCredentials, users: UserRepository) -> ApiSession:
        """认证请求。

        Args:
            credentials: 已解析的请求凭据
            users: 账户仓储

        Returns:
            ApiSession: 带 allow_api 标记的会话

        Raises:
            Unauthorized: 两种方式都失败
        """
        if not credentials.present or not credentials.authorization:
            logger.debug("API 登录失败: 缺少认证信息")
            raise self.challenge()

        cached = self.sessions.get(credentials.authorization)
        if cached is not None and cached.allow_api:
            return cached

        user = None
        if credentials.bearer is not None:
            user = await self._from_request_token(credentials.bearer.credentials, users)
        if user is None and credentials.basic is not None:
            user = await self._from_basic(credentials.basic, users)

        if user is None:
            raise self.challenge()

        session = self.sessions.store(credentials.authorization, user, allow_api=True)
        await self._fire_logged_in(user)
        logger.debug(f"API 登录成功: {user.nickname}")
        return session

    async def _from_request_token(self, token: str, users: UserRepository) -> UserDomain | None:
        try:
            payload = self.auth_service.decode_request_token(token.strip())
        except jwt.InvalidTokenError as e:
            logger.warning(f"签名请求校验失败: {e}")
            return None

        user_id = payload.get("sub")
        if user_id is None or not str(user_id).isdigit():
            logger.warning("签名请求缺少有效的账户标识")
            return None
        user = await users.get_user_by_id(int(user_id))
        if user is None:
            logger.warning(f"签名请求对应的账户不存在: {user_id}")
        return user

    async def _from_basic(
        self, credentials: HTTPBasicCredentials, users: UserRepository
    ) -> UserDomain | None:
        username = login_name(credentials.username)
        password = credentials.password.strip()

        for authenticator in self.authenticators:
            user = await authenticator.authenticate(username, password)
            if user is not None:
                logger.debug(f"外部认证成功: {username}")
                return user

        record = await users.get_user_orm_by_login(username)
        if record is None or not record.password_hash:
            logger.warning(f"API 登录失败: 账户不存在 {username}")
            return None
        if not await self.auth_service.verify_password(password, record.password_hash):
            logger.warning(f"API 登录失败: 密码错误 {username}")
            return None
        return UserDomain.from_orm(record)

    async def _fire_logged_in(self, user: UserDomain) -> None:
        for listener in self._listeners:
            result = listener(user)
            if inspect.isawaitable(result):
                await result

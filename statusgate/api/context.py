"""请求上下文。

显式承载一次 API 调用的参数、身份、输出格式与数据访问组件，
由分发器创建后传给处理器。
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from statusgate.auth.domain.models import ApiSession, UserDomain
from statusgate.auth.gate import ApiCredentials
from statusgate.auth.infrastructure.repository import UserRepository
from statusgate.config import Settings
from statusgate.status.actors import ActorResolver
from statusgate.status.assembler import StatusAssembler
from statusgate.status.content import ContentTransformer
from statusgate.status.domain.models import PaginationWindow
from statusgate.status.entities import EntityExtractor
from statusgate.status.infrastructure.repository import (
    ContactRepository,
    MailRepository,
    PhotoRepository,
    PostRepository,
)
from statusgate.status.markup import BBCodeRenderer, MarkupRenderer
from statusgate.status.pagination import window_from_params
from statusgate.status.threads import ThreadResolver

TRUTHY = ("1", "true", "yes", "on")


@dataclass
class ApiResult:
    """处理器返回值。

    data 只有一个键：子元素名到内容的映射，与 root_element 一起决定 XML 结构；
    extra 是 RSS/Atom 输出时追加在根元素下的兄弟元素。
    """

    root_element: str
    data: dict[str, Any]
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def payload(self) -> Any:
        """JSON 输出的内容：唯一子元素的值。"""
        return next(iter(self.data.values()))


@dataclass
class RequestContext:
    """一次 API 调用的上下文。"""

    method: str
    path: str
    request_uri: str
    query: Mapping[str, str]
    form: Mapping[str, str]
    headers: Mapping[str, str]
    fmt: str
    session: AsyncSession
    settings: Settings
    credentials: ApiCredentials = field(default_factory=ApiCredentials)
    pattern: str = ""
    path_args: list[str] = field(default_factory=list)
    api_session: ApiSession | None = None
    renderer: MarkupRenderer | None = None

    @property
    def user(self) -> UserDomain | None:
        """可代表其调用 API 的账户。"""
        if self.api_session is None or not self.api_session.allow_api:
            return None
        return self.api_session.user

    @property
    def uid(self) -> int | None:
        return self.user.id if self.user else None

    @cached_property
    def params(self) -> dict[str, str]:
        """合并后的请求参数，POST 优先。"""
        return {**self.query, **self.form}

    def param(self, name: str, default: str | None = None) -> str | None:
        value = self.params.get(name)
        return default if value is None else value

    def flag(self, name: str) -> bool:
        """布尔参数。"""
        value = self.params.get(name)
        return value is not None and value.strip().lower() in TRUTHY

    def int_param(self, name: str, default: int = 0) -> int:
        value = (self.params.get(name) or "").strip()
        try:
            return int(value)
        except ValueError:
            return default

    @property
    def path_arg(self) -> str | None:
        """端点路径之后的第一个参数。"""
        return self.path_args[0] if self.path_args else None

    @property
    def include_entities(self) -> bool:
        return self.flag("include_entities")

    def window(self, default_count: int = 20) -> PaginationWindow:
        return window_from_params(self.params, default_count)

    # 数据访问组件按需创建，在一次请求内复用

    @cached_property
    def posts(self) -> PostRepository:
        return PostRepository(self.session)

    @cached_property
    def contacts(self) -> ContactRepository:
        return ContactRepository(self.session)

    @cached_property
    def mails(self) -> MailRepository:
        return MailRepository(self.session)

    @cached_property
    def photos(self) -> PhotoRepository:
        return PhotoRepository(self.session)

    @cached_property
    def users(self) -> UserRepository:
        return UserRepository(self.session)

    @cached_property
    def actors(self) -> ActorResolver:
        return ActorResolver(self.contacts, self.users, self.settings.auth_realm)

    @cached_property
    def transformer(self) -> ContentTransformer:
        extractor = EntityExtractor(self.settings.base_url, self.settings.proxy_disabled)
        return ContentTransformer(
            self.renderer or BBCodeRenderer(),
            extractor,
            self.settings.base_url,
        )

    @cached_property
    def assembler(self) -> StatusAssembler:
        return StatusAssembler(
            self.posts,
            self.photos,
            self.actors,
            ThreadResolver(self.posts),
            self.transformer,
        )

    async def resolve_user(self, contact_ref: int | str | None = None) -> dict:
        """解析请求的目标参与者。"""
        return await self.actors.resolve(
            self.uid,
            contact_ref,
            user_id=self.param("user_id"),
            screen_name=self.param("screen_name"),
            profileurl=self.param("profileurl"),
            path_arg=self.path_arg,
        )

    async def own_user(self) -> dict:
        """当前账户自身的用户视图，忽略 user_id、screen_name 等目标参数。"""
        return await self.actors.resolve(self.uid)

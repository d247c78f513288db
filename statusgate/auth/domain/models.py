"""认证领域模型。

定义账户和 API 会话的 Pydantic 领域模型，与 ORM 模型分离。
"""

from datetime import datetime

from pydantic import BaseModel


class UserDomain(BaseModel):
    """账户领域模型。"""

    id: int
    nickname: str
    name: str
    email: str
    default_location: str = ""
    language: str = "en"
    hidewall: bool = False
    created_at: datetime

    @classmethod
    def from_orm(cls, orm_obj) -> "UserDomain":
        return cls(
            id=orm_obj.id,
            nickname=orm_obj.nickname,
            name=orm_obj.name,
            email=orm_obj.email,
            default_location=orm_obj.default_location,
            language=orm_obj.language,
            hidewall=orm_obj.hidewall,
            created_at=orm_obj.created_at,
        )


class ApiSession(BaseModel):
    """API 会话。

    allow_api 只在通过 API 认证后置位，浏览器登录态本身不足以调用 API。
    """

    user: UserDomain
    allow_api: bool = False
    expires_at: float

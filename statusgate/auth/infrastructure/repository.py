"""账户数据访问层。"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statusgate.auth.domain.models import UserDomain
from statusgate.database.models import User as UserOrm

logger = logging.getLogger(__name__)


class UserRepository:
    """账户数据操作。"""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_user_by_id(self, user_id: int) -> UserDomain | None:
        result = await self._session.execute(select(UserOrm).where(UserOrm.id == user_id))
        user = result.scalar_one_or_none()
        return UserDomain.from_orm(user) if user else None

    async def get_user_orm_by_login(self, login: str) -> UserOrm | None:
        """按昵称或邮箱获取未被封禁的 ORM 对象（密码验证需要 password_hash）。"""
        result = await self._session.execute(
            select(UserOrm).where(
                (UserOrm.nickname == login) | (UserOrm.email == login),
                ~UserOrm.blocked,
            )
        )
        return result.scalars().first()

"""异步数据库会话管理。

提供异步引擎、会话工厂以及 FastAPI 的请求级会话依赖。
"""

import logging
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

logger = logging.getLogger(__name__)

# 延迟初始化
_async_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def to_async_url(url: str) -> str:
    """将同步数据库 URL 转换为异步驱动 URL。

    sqlite:///./statusgate.db -> sqlite+aiosqlite:///./statusgate.db，
    其他 URL 原样返回，需自行指定异步驱动。
    """
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def get_async_engine() -> AsyncEngine:
    """获取异步数据库引擎（首次调用时创建）。"""
    global _async_engine
    if _async_engine is None:
        from statusgate.config import get_settings

        settings = get_settings()
        _async_engine = create_async_engine(
            to_async_url(settings.database_url),
            echo=settings.log_level == "DEBUG",
            pool_pre_ping=True,
        )
        logger.info("异步数据库引擎已创建")
    return _async_engine


def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    """获取异步会话工厂。"""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_maker


async def dispose_async_engine() -> None:
    """释放引擎连接池，应用关闭时调用。"""
    global _async_engine, _async_session_maker
    if _async_engine is not None:
        await _async_engine.dispose()
        logger.info("异步数据库引擎已释放")
    _async_engine = None
    _async_session_maker = None


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI 依赖：每个请求一个数据库会话。

    处理成功后提交，出现异常时回滚并继续抛出。

    Yields:
        AsyncSession: 异步数据库会话
    """
    async with get_async_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

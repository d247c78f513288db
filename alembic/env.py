"""Alembic 迁移环境。

数据库地址取自 statusgate 配置，元数据取自全部 ORM 模型。
"""

from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

from statusgate.config import get_settings
from statusgate.database.models import Base

# 导入状态存储模型，使其注册到 Base.metadata
import statusgate.status.infrastructure.models  # noqa: F401

config = context.config

settings = get_settings()
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def sync_url(url: str) -> str:
    """迁移始终使用同步驱动。"""
    return url.replace("sqlite+aiosqlite:///", "sqlite:///")


def run_migrations_offline() -> None:
    """离线模式：只输出 SQL，不连接数据库。"""
    context.configure(
        url=sync_url(config.get_main_option("sqlalchemy.url")),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """在线模式：连接数据库执行迁移。"""
    connectable = create_engine(
        sync_url(settings.database_url),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,  # SQLite 修改表结构需要 batch 模式
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

"""Pytest 配置文件。

提供测试 Fixtures 和配置。
"""

import base64
import os
from datetime import datetime, timezone

import pytest

from statusgate.api.routes import reset_dispatcher
from statusgate.config import clear_settings_cache
from statusgate.database.models import Base, User as UserOrm
from statusgate.main import app

# 导入所有 ORM 模型以确保它们被注册到 Base.metadata
from statusgate.status.infrastructure.models import (  # noqa: F401
    ContactOrm,
    ContactRelation,
    ItemOrm,
    MailOrm,
    PhotoOrm,
)

BASE_URL = "http://localhost:8000"
PASSWORD = "TestPassword123"


@pytest.fixture(autouse=True)
def reset_env_before_each_test():
    """每个测试前后重置环境变量、配置缓存与分发器单例。"""
    original_env = os.environ.copy()
    os.environ["BASE_URL"] = BASE_URL
    os.environ["LOG_LEVEL"] = "WARNING"
    os.environ["JWT_SECRET_KEY"] = "test-statusgate-jwt-secret-key-32bytes!"
    os.environ["PROMETHEUS_ENABLED"] = "true"
    clear_settings_cache()
    reset_dispatcher()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    clear_settings_cache()
    reset_dispatcher()


@pytest.fixture(scope="function")
async def async_session():
    """异步数据库会话 Fixture。

    每个测试函数使用独立的内存数据库。
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    test_session_maker = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with test_session_maker() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture(scope="function")
async def async_client(async_session):
    """异步 HTTP 客户端 Fixture，数据库依赖覆写为测试会话。"""
    from httpx import ASGITransport, AsyncClient

    from statusgate.database.async_session import get_db_session

    transport = ASGITransport(app=app)

    async def override_get_db_session():
        yield async_session

    app.dependency_overrides[get_db_session] = override_get_db_session

    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db_session, None)


def basic_auth(login: str, password: str = PASSWORD) -> dict[str, str]:
    """Basic 认证请求头。"""
    token = base64.b64encode(f"{login}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


async def add_contact(session, uid: int, url: str, nick: str, name: str, **fields) -> ContactOrm:
    from statusgate.status.urls import normalise_link

    contact = ContactOrm(
        uid=uid,
        url=url,
        nurl=normalise_link(url),
        nick=nick,
        name=name,
        micro=fields.pop("micro", f"{url}/avatar.png"),
        network=fields.pop("network", "dfrn"),
        **fields,
    )
    session.add(contact)
    await session.flush()
    return contact


async def add_item(session, uid: int, contact: ContactOrm, item_id: int, body: str, **fields) -> ItemOrm:
    """插入一条会话根条目（可用 parent、thr_parent 覆盖为回复）。"""
    uri = fields.pop("uri", f"{BASE_URL}/objects/item-{item_id}")
    item = ItemOrm(
        id=item_id,
        uid=uid,
        guid=f"item-{item_id}",
        uri=uri,
        parent=fields.pop("parent", item_id),
        thr_parent=fields.pop("thr_parent", uri),
        contact_id=contact.id,
        author_id=contact.id,
        author_name=contact.name,
        author_link=contact.url,
        author_avatar=contact.micro,
        owner_name=contact.name,
        owner_link=contact.url,
        owner_avatar=contact.micro,
        body=body,
        verb="http://activitystrea.ms/schema/1.0/post",
        network="dfrn",
        plink=f"{BASE_URL}/display/item-{item_id}",
        created=fields.pop("created", datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)),
        wall=fields.pop("wall", True),
        **fields,
    )
    session.add(item)
    await session.flush()
    return item


@pytest.fixture
async def seeded(async_session):
    """本地账户 alice 及其好友 bob。

    Returns:
        dict: user、self_contact、bob 与对应的公共联系人
    """
    from statusgate.auth.services.auth_service import AuthService

    password_hash = await AuthService().hash_password(PASSWORD)
    user = UserOrm(
        nickname="alice",
        name="Alice",
        email="alice@example.com",
        password_hash=password_hash,
        default_location="Berlin",
    )
    async_session.add(user)
    await async_session.flush()

    alice_url = f"{BASE_URL}/profile/alice"
    bob_url = "https://remote.example/profile/bob"

    self_contact = await add_contact(
        async_session, user.id, alice_url, "alice", "Alice", is_self=True, about="Hi there"
    )
    public_alice = await add_contact(async_session, 0, alice_url, "alice", "Alice")
    bob = await add_contact(
        async_session, user.id, bob_url, "bob", "Bob", rel=ContactRelation.friend
    )
    public_bob = await add_contact(async_session, 0, bob_url, "bob", "Bob")
    await async_session.commit()

    return {
        "user": user,
        "self_contact": self_contact,
        "public_alice": public_alice,
        "bob": bob,
        "public_bob": public_bob,
    }


@pytest.fixture
def auth_headers(seeded) -> dict[str, str]:  # noqa: ARG001 - 依赖账户已创建
    """alice 的 Basic 认证请求头。"""
    return basic_auth("alice")


@pytest.fixture
def make_item(async_session, seeded):
    """在 alice 名下插入条目的工厂，默认作者为 bob。"""

    async def factory(item_id: int, body: str = "hello", author: str = "bob", **fields) -> ItemOrm:
        contact = seeded["self_contact"] if author == "alice" else seeded["bob"]
        item = await add_item(async_session, seeded["user"].id, contact, item_id, body, **fields)
        await async_session.commit()
        return item

    return factory

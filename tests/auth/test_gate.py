"""API 认证入口测试。"""

import base64

import pytest
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasicCredentials

from statusgate.api.errors import Unauthorized
from statusgate.auth.gate import ApiCredentials, AuthGate, login_name
from statusgate.auth.infrastructure.repository import UserRepository
from statusgate.auth.services.auth_service import AuthService
from statusgate.auth.services.session_cache import SessionCache


def _basic(username: str, password: str) -> ApiCredentials:
    raw = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return ApiCredentials(
        authorization=f"Basic {raw}",
        basic=HTTPBasicCredentials(username=username, password=password),
    )


def _bearer(token: str) -> ApiCredentials:
    return ApiCredentials(
        authorization=f"Bearer {token}",
        bearer=HTTPAuthorizationCredentials(scheme="Bearer", credentials=token),
    )


def _gate() -> AuthGate:
    return AuthGate(AuthService(), SessionCache(ttl_seconds=60), realm="Test")


def test_login_name_ignores_domain():
    assert login_name("alice") == "alice"
    assert login_name("alice@example.com") == "alice"
    assert login_name(" bob ") == "bob"
    # 以 @ 开头时保留原值
    assert login_name("@alice") == "@alice"


def test_api_user_requires_allow_api():
    gate = _gate()
    assert gate.api_user(None) is None


def test_current_session_without_credentials():
    gate = _gate()

    assert gate.current_session(ApiCredentials()) is None
    # 只有认证头但无法解析时也不查缓存
    assert gate.current_session(ApiCredentials(authorization="Basic !!!")) is None


async def test_login_without_credentials_challenges(async_session):
    gate = _gate()

    with pytest.raises(Unauthorized) as exc_info:
        await gate.login(ApiCredentials(), UserRepository(async_session))

    assert exc_info.value.headers == {"WWW-Authenticate": 'Basic realm="Test"'}


async def test_login_with_password(async_session, seeded):
    gate = _gate()
    seen = []
    gate.on_logged_in(lambda user: seen.append(user.nickname))
    credentials = _basic("alice", "TestPassword123")

    session = await gate.login(credentials, UserRepository(async_session))

    assert session.allow_api
    assert session.user.nickname == "alice"
    assert seen == ["alice"]
    assert gate.current_session(credentials) == session


async def test_login_by_email(async_session, seeded):
    gate = _gate()

    # 邮箱的域名部分被忽略，按昵称 alice 查找
    session = await gate.login(
        _basic("alice@example.com", "TestPassword123"), UserRepository(async_session)
    )

    assert session.user.id == seeded["user"].id


async def test_login_with_wrong_password(async_session, seeded):
    gate = _gate()

    with pytest.raises(Unauthorized):
        await gate.login(_basic("alice", "wrong"), UserRepository(async_session))


async def test_login_with_request_token(async_session, seeded):
    gate = _gate()
    token = AuthService().create_request_token(seeded["user"].id)

    session = await gate.login(_bearer(token), UserRepository(async_session))

    assert session.user.nickname == "alice"


async def test_login_with_invalid_token(async_session, seeded):
    gate = _gate()

    with pytest.raises(Unauthorized):
        await gate.login(_bearer("not-a-jwt"), UserRepository(async_session))


async def test_external_authenticator_runs_first(async_session, seeded):
    gate = _gate()
    repository = UserRepository(async_session)
    alice = await repository.get_user_by_id(seeded["user"].id)

    class AcceptAll:
        async def authenticate(self, username, password):
            return alice if username == "ext" else None

    gate.add_authenticator(AcceptAll())

    session = await gate.login(_basic("ext@elsewhere.org", "anything"), repository)

    assert session.user.id == alice.id

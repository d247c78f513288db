"""API 会话缓存测试。"""

from datetime import datetime, timezone

from statusgate.auth.domain.models import UserDomain
from statusgate.auth.services import session_cache
from statusgate.auth.services.session_cache import SessionCache, credential_key

USER = UserDomain(
    id=1,
    nickname="alice",
    name="Alice",
    email="alice@example.com",
    created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
)


def test_store_and_get():
    cache = SessionCache(ttl_seconds=60)

    stored = cache.store("Basic abc", USER)

    assert stored.allow_api
    assert cache.get("Basic abc") == stored
    assert cache.get("Basic other") is None
    assert len(cache) == 1


def test_expired_session_is_dropped(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(session_cache.time, "monotonic", lambda: clock[0])
    cache = SessionCache(ttl_seconds=10)
    cache.store("Basic abc", USER)

    clock[0] = 1011.0

    assert cache.get("Basic abc") is None
    assert len(cache) == 0


def test_credentials_are_not_kept_verbatim():
    cache = SessionCache(ttl_seconds=60)
    cache.store("Basic secret", USER)

    assert "Basic secret" not in cache._sessions
    assert credential_key("Basic secret") in cache._sessions


def test_clear():
    cache = SessionCache(ttl_seconds=60)
    cache.store("Basic abc", USER)

    cache.clear()

    assert len(cache) == 0


def test_store_prunes_expired_sessions(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(session_cache.time, "monotonic", lambda: clock[0])
    cache = SessionCache(ttl_seconds=10)
    for index in range(1000):
        cache.store(f"Bearer token-{index}", USER)
    assert len(cache) == 1000

    clock[0] = 1011.0
    cache.store("Bearer fresh", USER)

    assert len(cache) == 1
    assert cache.get("Bearer fresh") is not None


def test_prune_keeps_live_sessions(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(session_cache.time, "monotonic", lambda: clock[0])
    cache = SessionCache(ttl_seconds=10)
    cache.store("Basic old", USER)
    clock[0] = 1005.0
    cache.store("Basic new", USER)

    clock[0] = 1012.0

    assert cache.prune() == 1
    assert cache.get("Basic new") is not None

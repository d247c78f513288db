"""API 会话缓存。

以请求凭据的摘要为键保存认证结果，同一凭据在有效期内无需重复校验。
"""

import hashlib
import logging
import time

from statusgate.auth.domain.models import ApiSession, UserDomain

logger = logging.getLogger(__name__)


def credential_key(authorization: str) -> str:
    """凭据摘要，避免在内存中保留原始凭据。"""
    return hashlib.sha256(authorization.encode("utf-8")).hexdigest()


class SessionCache:
    """内存会话缓存。"""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, ApiSession] = {}

    def get(self, authorization: str) -> ApiSession | None:
        """获取未过期的会话，过期会话顺便清除。"""
        key = credential_key(authorization)
        session = self._sessions.get(key)
        if session is None:
            return None
        if session.expires_at <= time.monotonic():
            del self._sessions[key]
            logger.debug("API 会话已过期")
            return None
        return session

    def store(self, authorization: str, user: UserDomain, allow_api: bool = True) -> ApiSession:
        """保存会话，同时清除全部已过期的会话。"""
        now = time.monotonic()
        self.prune(now)
        session = ApiSession(
            user=user,
            allow_api=allow_api,
            expires_at=now + self.ttl_seconds,
        )
        self._sessions[credential_key(authorization)] = session
        return session

    def prune(self, now: float | None = None) -> int:
        """清除已过期的会话，返回清除数量。"""
        now = time.monotonic() if now is None else now
        expired = [key for key, session in self._sessions.items() if session.expires_at <= now]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.debug(f"已清除 {len(expired)} 个过期 API 会话")
        return len(expired)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

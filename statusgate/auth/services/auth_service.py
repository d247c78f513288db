"""认证原语服务。

提供密码哈希与签名请求令牌（JWT）的生成和校验。
纯函数式设计，不持有数据库访问权限。
"""

import asyncio
import base64
import hashlib
from datetime import datetime, timezone, timedelta
from typing import Any

import bcrypt
import jwt

from statusgate.config import get_settings


def _password_bytes(password: str) -> bytes:
    """bcrypt 只接受 72 字节以内的输入，超长时先做 SHA-256+base64。"""
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        password_bytes = base64.b64encode(hashlib.sha256(password_bytes).digest())
    return password_bytes


class AuthService:
    """认证原语服务。"""

    async def hash_password(self, password: str) -> str:
        """bcrypt 哈希密码。"""
        hashed = await asyncio.to_thread(
            bcrypt.hashpw, _password_bytes(password), bcrypt.gensalt(rounds=12)
        )
        return hashed.decode("utf-8")

    async def verify_password(self, password: str, hashed: str) -> bool:
        """验证密码。"""
        hashed_bytes = hashed.encode("utf-8") if isinstance(hashed, str) else hashed
        return await asyncio.to_thread(bcrypt.checkpw, _password_bytes(password), hashed_bytes)

    def create_request_token(self, user_id: int) -> str:
        """为账户签发签名请求令牌。"""
        settings = get_settings()
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "exp": now + timedelta(hours=settings.jwt_expire_hours),
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm="HS256")

    def decode_request_token(self, token: str) -> dict[str, Any]:
        """解码并验证签名请求令牌，失败时抛出 jwt.InvalidTokenError。"""
        settings = get_settings()
        return jwt.decode(token, settings.jwt_secret_key, algorithms=["HS256"])

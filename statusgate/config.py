"""配置管理模块。

使用 Pydantic 加载和验证环境变量。
"""

from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 加载 .env 文件
load_dotenv()


class Settings(BaseSettings):
    """应用配置。

    从环境变量加载配置，使用 Pydantic 进行验证。
    """

    # 站点配置
    base_url: str = Field(
        default="http://localhost:8000",
        description="站点根地址，用于生成永久链接和代理地址"
    )
    site_name: str = Field(default="Statusgate", description="站点名称")
    admin_email: str = Field(default="", description="管理员邮箱")
    register_closed: bool = Field(default=False, description="是否关闭注册")
    block_public: bool = Field(default=False, description="是否禁止公开访问")
    max_import_size: int = Field(
        default=200000, ge=0, description="单条状态最大字符数"
    )
    have_ssl: bool = Field(default=False, description="站点是否支持 SSL")

    # 数据库配置
    database_url: str = Field(
        default="sqlite:///./statusgate.db",
        description="数据库连接地址"
    )

    # 日志配置
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="日志级别",
        validate_default=True,  # 确保默认值也经过验证
    )

    # 监控配置
    prometheus_enabled: bool = Field(
        default=True, description="是否启用 Prometheus 监控"
    )

    # 认证配置
    jwt_secret_key: str = Field(
        default="change-me-in-production",
        description="签名请求（JWT）密钥"
    )
    jwt_expire_hours: int = Field(
        default=24,
        description="JWT 过期时间（小时）"
    )
    auth_realm: str = Field(
        default="Statusgate", description="Basic 认证质询中的 realm"
    )
    api_session_ttl: int = Field(
        default=3600, ge=1, description="API 会话缓存有效期（秒）"
    )

    # 图片代理
    proxy_disabled: bool = Field(
        default=False, description="是否禁用图片缓存代理"
    )

    # 发帖频率限制（0 表示不限制）
    throttle_limit_day: int = Field(default=0, ge=0, description="每日发帖上限")
    throttle_limit_week: int = Field(default=0, ge=0, description="每周发帖上限")
    throttle_limit_month: int = Field(default=0, ge=0, description="每月发帖上限")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证并标准化日志级别。"""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """去除站点地址末尾的斜杠。"""
        return v.rstrip("/")

    @property
    def hostname(self) -> str:
        """站点主机名。"""
        return self.base_url.split("://", 1)[-1].split("/", 1)[0]


# 全局缓存，用于测试时清除
_settings_cache: Settings | None = None


def get_settings() -> Settings:
    """获取配置单例。

    使用全局缓存确保配置只加载一次。

    Returns:
        Settings: 配置实例
    """
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings()
    return _settings_cache


def clear_settings_cache() -> None:
    """清除配置缓存。

    主要用于测试场景。
    """
    global _settings_cache
    _settings_cache = None

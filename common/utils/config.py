"""Settings loader with .env support."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Platform configuration."""

    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")

    # --- 用户自带 Key 的加密存储 ---
    encryption_key: Optional[str] = Field(default=None, validation_alias="ENCRYPTION_KEY")

    # --- 积分 / 订阅模式共用的系统 AI 配置 ---
    common_ai_provider: Optional[str] = Field(default=None, validation_alias="COMMON_AI_PROVIDER")
    common_ai_api_key: Optional[str] = Field(default=None, validation_alias="COMMON_AI_API_KEY")
    common_ai_api_endpoint: Optional[str] = Field(default=None, validation_alias="COMMON_AI_API_ENDPOINT")

    # --- 出站请求 ---
    ai_request_timeout: float = Field(default=60.0, validation_alias="AI_REQUEST_TIMEOUT")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )


def load_settings() -> Settings:
    """每次重新读取环境变量，不走缓存。"""

    return Settings()


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()

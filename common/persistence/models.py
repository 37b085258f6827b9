"""SQLAlchemy ORM 模型定义。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from common.domain import AIConfigMode, AIProvider


AIProviderEnum = SAEnum(
    AIProvider,
    name="ai_provider",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)

AIConfigModeEnum = SAEnum(
    AIConfigMode,
    name="ai_config_mode",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)


class Base(DeclarativeBase):
    """所有 ORM 的基类。"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class UserORM(TimestampMixin, Base):
    """用户表，只映射 AI 配置相关字段。"""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(100))

    ai_config_mode: Mapped[Optional[AIConfigMode]] = mapped_column(AIConfigModeEnum)
    ai_provider: Mapped[Optional[AIProvider]] = mapped_column(AIProviderEnum)
    ai_model: Mapped[Optional[str]] = mapped_column(String(100))
    ai_api_key: Mapped[Optional[str]] = mapped_column(Text)  # 密文 iv:authTag:data
    ai_api_endpoint: Mapped[Optional[str]] = mapped_column(String(500))
    ai_custom_provider_name: Mapped[Optional[str]] = mapped_column(String(100))
    ai_config_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

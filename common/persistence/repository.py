"""Lightweight repository helpers for user AI settings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from common.domain import AIConfigMode, AIProvider
from common.utils.crypto import encrypt_api_key

from . import models


class UserRepository:
    """User access helpers."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_active(self, user_id: int) -> Optional[models.UserORM]:
        """按 ID 查询未软删除的用户。"""

        stmt = select(models.UserORM).where(
            models.UserORM.id == user_id,
            models.UserORM.deleted_at.is_(None),
        )
        return self.session.scalars(stmt).first()

    def add(self, user: models.UserORM) -> None:
        self.session.add(user)

    def save_ai_config(
        self,
        user_id: int,
        *,
        mode: AIConfigMode,
        provider: Optional[AIProvider] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        api_endpoint: Optional[str] = None,
        custom_provider_name: Optional[str] = None,
        encryption_key: Optional[str] = None,
    ) -> Optional[models.UserORM]:
        """
        保存用户 AI 配置，明文 api_key 加密后落库。
        api_key 为 None 时保留已保存的密文；用户不存在返回 None。
        """

        user = self.get_active(user_id)
        if user is None:
            return None
        user.ai_config_mode = mode
        user.ai_provider = provider
        user.ai_model = model or None
        user.ai_api_endpoint = api_endpoint or None
        user.ai_custom_provider_name = (
            custom_provider_name if provider == AIProvider.CUSTOM else None
        )
        if api_key is not None:
            user.ai_api_key = encrypt_api_key(api_key, encryption_key) if api_key else None
        user.ai_config_updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return user

    def clear_ai_config(self, user_id: int) -> bool:
        user = self.get_active(user_id)
        if user is None:
            return False
        user.ai_config_mode = None
        user.ai_provider = None
        user.ai_model = None
        user.ai_api_key = None
        user.ai_api_endpoint = None
        user.ai_custom_provider_name = None
        user.ai_config_updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return True

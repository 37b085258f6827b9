"""统一的 AI 调用入口：配置解析、调用分发与连接测试。"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.ai.system_config import get_system_config_by_mode
from common.clients.llm.base import AICallParams, AIConfig, AIResponse
from common.clients.llm.router import ProviderRouter, get_default_router
from common.domain import AIConfigMode
from common.persistence.database import session_scope
from common.persistence.models import UserORM
from common.persistence.repository import UserRepository
from common.utils.crypto import ApiKeyDecryptionError, EncryptionConfigError, decrypt_api_key

logger = logging.getLogger(__name__)

# 枚举列存了未知值时 SQLAlchemy 抛 LookupError；环境变量格式错误时抛 ValidationError
_RESOLVE_ERRORS = (
    ApiKeyDecryptionError,
    EncryptionConfigError,
    SQLAlchemyError,
    LookupError,
    ValidationError,
)

SessionFactory = Callable[[], Session]

CONNECTION_TEST_PROMPT = "Please reply 'Connection successful'"
CONNECTION_TEST_SYSTEM_PROMPT = "You are an AI assistant. Please reply briefly."


@dataclass
class UserAIConfig:
    """用户当前生效的 AI 配置及其来源模式。"""

    config: AIConfig
    mode: AIConfigMode


@dataclass
class ConnectionTestResult:
    success: bool
    details: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "details": self.details}
        return {"success": False, "error": self.error}


def _provider_label(config: AIConfig) -> str:
    return getattr(config.provider, "value", str(config.provider))


def call_ai(params: AICallParams, router: Optional[ProviderRouter] = None) -> AIResponse:
    """按 provider 分发调用，原样返回 Provider 的结果；不缓存、不重试。"""

    router = router or get_default_router()
    try:
        return router.complete(params)
    except Exception as exc:
        logger.error("AI调用失败 (%s): %s", _provider_label(params.config), exc)
        raise


def test_ai_connection(
    config: AIConfig, router: Optional[ProviderRouter] = None
) -> ConnectionTestResult:
    """
    发起一次低成本调用验证配置可用性。

    所有异常都转换为 success=False 的结果返回，供设置页的“测试连接”使用。
    """

    try:
        response = call_ai(
            AICallParams(
                config=replace(config, custom_provider_name=None),
                prompt=CONNECTION_TEST_PROMPT,
                system_prompt=CONNECTION_TEST_SYSTEM_PROMPT,
                temperature=0.3,
                max_tokens=50,
            ),
            router=router,
        )
    except Exception as exc:  # noqa: BLE001 - 连接测试需要把任何失败都转成结果
        logger.info("AI 连接测试失败 (%s): %s", _provider_label(config), exc)
        return ConnectionTestResult(success=False, error=str(exc) or "未知错误")

    logger.info("AI 连接测试成功 (%s/%s)", _provider_label(config), config.model)
    return ConnectionTestResult(
        success=True,
        details={
            "response": response.content,
            "usage": response.usage.to_dict() if response.usage else None,
        },
    )


def _user_key_config(user: UserORM) -> Optional[AIConfig]:
    if not user.ai_provider or not user.ai_api_key:
        return None
    return AIConfig(
        provider=user.ai_provider,
        model=user.ai_model or "",
        api_key=decrypt_api_key(user.ai_api_key),
        api_endpoint=user.ai_api_endpoint or None,
        custom_provider_name=user.ai_custom_provider_name or None,
    )


def _resolve_by_mode(user: UserORM) -> Optional[UserAIConfig]:
    mode = user.ai_config_mode or AIConfigMode.CUSTOM
    if mode == AIConfigMode.CUSTOM:
        config = _user_key_config(user)
        return UserAIConfig(config=config, mode=mode) if config else None

    system_config = get_system_config_by_mode(mode)
    if system_config is None:
        logger.error("系统配置不可用：%s", mode.value)
        return None
    # 系统 Key + 用户在前端选择的模型
    if not user.ai_model:
        logger.error("用户未选择模型：user_id=%s, mode=%s", user.id, mode.value)
        return None
    return UserAIConfig(config=replace(system_config, model=user.ai_model), mode=mode)


def resolve_user_ai_config(
    user_id: int, session_factory: Optional[SessionFactory] = None
) -> Optional[AIConfig]:
    """
    读取并解密用户自带的 Key。

    用户不存在、未配置 provider 或 api_key 时返回 None；
    解密或数据库异常记录日志后同样返回 None。
    """

    try:
        with session_scope(session_factory) as session:
            user = UserRepository(session).get_active(user_id)
            return _user_key_config(user) if user else None
    except _RESOLVE_ERRORS as exc:
        logger.error("获取AI配置失败 (user_id=%s): %s", user_id, exc)
        return None


def get_user_ai_config(
    user_id: int, session_factory: Optional[SessionFactory] = None
) -> Optional[UserAIConfig]:
    """
    按用户选择的模式解析配置。

    - credits / subscription：使用系统 Key，模型取用户保存的 ai_model
    - custom（默认）：使用用户自己的 Key
    """

    try:
        with session_scope(session_factory) as session:
            user = UserRepository(session).get_active(user_id)
            return _resolve_by_mode(user) if user else None
    except _RESOLVE_ERRORS as exc:
        logger.error("获取AI配置失败 (user_id=%s): %s", user_id, exc)
        return None


__all__ = [
    "ConnectionTestResult",
    "UserAIConfig",
    "call_ai",
    "get_user_ai_config",
    "resolve_user_ai_config",
    "test_ai_connection",
]

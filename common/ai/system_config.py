"""积分 / 订阅模式共用的系统 AI 配置。

两种模式目前读取同一组 COMMON_AI_* 环境变量；model 留空，由用户在调用时选择。
每次调用都重新读取环境变量。
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from common.clients.llm.base import AIConfig, UnsupportedProviderError, parse_provider
from common.domain import AIConfigMode
from common.utils.config import load_settings

logger = logging.getLogger(__name__)


def _common_system_config() -> Optional[AIConfig]:
    try:
        settings = load_settings()
    except ValidationError as exc:
        logger.warning("环境变量校验失败，无法读取通用 AI 配置: %s", exc)
        return None

    if not settings.common_ai_provider or not settings.common_ai_api_key:
        logger.warning(
            "通用 AI 配置不完整，请检查环境变量 COMMON_AI_PROVIDER 和 COMMON_AI_API_KEY"
        )
        return None

    try:
        provider = parse_provider(settings.common_ai_provider.strip().lower())
    except UnsupportedProviderError as exc:
        logger.warning("COMMON_AI_PROVIDER 无效: %s", exc)
        return None

    return AIConfig(
        provider=provider,
        model="",
        api_key=settings.common_ai_api_key,
        api_endpoint=settings.common_ai_api_endpoint or None,
    )


def get_credits_system_config() -> Optional[AIConfig]:
    """积分模式的系统配置，未配置时返回 None。"""

    return _common_system_config()


def get_subscription_system_config() -> Optional[AIConfig]:
    """订阅模式的系统配置，未配置时返回 None。"""

    return _common_system_config()


def get_system_config_by_mode(mode: AIConfigMode | str) -> Optional[AIConfig]:
    """custom 模式只走用户自己的 Key，这里始终返回 None。"""

    try:
        mode = AIConfigMode(mode)
    except ValueError:
        logger.warning("未知的 AI 配置模式: %s", mode)
        return None
    if mode == AIConfigMode.CREDITS:
        return get_credits_system_config()
    if mode == AIConfigMode.SUBSCRIPTION:
        return get_subscription_system_config()
    return None


__all__ = [
    "get_credits_system_config",
    "get_subscription_system_config",
    "get_system_config_by_mode",
]

"""统一获取各提供商的模型列表。"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from common.clients.llm.base import parse_provider
from common.clients.llm.router import ProviderRouter, get_default_router
from common.domain import AIProvider

logger = logging.getLogger(__name__)

GEMINI_MODEL_PREFIX = "models/"

_OPENAI_EXCLUDED = (
    "embedding",
    "moderation",
    "audio",
    "codex",
    "tts",
    "search",
    "transcribe",
    "chat",
    "whisper",
    "preview",
    "davinci-002",
    "instruct",
)


def _entry_id(entry: Any) -> Optional[str]:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        return entry.get("id") or entry.get("name")
    return None


def normalize_model_ids(raw_models: Any) -> List[str]:
    """提取 id/name，去掉空值，去重后按字典序排序。"""

    if not isinstance(raw_models, list):
        return []
    ids = {model_id for model_id in map(_entry_id, raw_models) if model_id}
    return sorted(ids)


def _strip_gemini_prefix(raw_models: Iterable[Any]) -> List[Any]:
    # Gemini 返回 "models/gemini-pro"，调用时路径已包含 /models/
    stripped: List[Any] = []
    for entry in raw_models:
        model_id = _entry_id(entry)
        if model_id and model_id.startswith(GEMINI_MODEL_PREFIX):
            model_id = model_id[len(GEMINI_MODEL_PREFIX):]
        stripped.append(model_id)
    return stripped


def _is_chat_model(model: str, provider: AIProvider) -> bool:
    lowered = model.lower()
    if provider == AIProvider.OPENAI:
        return lowered.startswith(("gpt-5", "gpt-4", "gpt-3.5-turbo")) and not any(
            token in lowered for token in _OPENAI_EXCLUDED
        )
    if provider == AIProvider.DEEPSEEK:
        return "deepseek-chat" in lowered
    if provider == AIProvider.CLAUDE:
        return lowered.startswith(("claude-4", "claude-3"))
    if provider == AIProvider.GEMINI:
        return lowered.startswith(("gemini-pro", "gemini-2.5")) and "embedding" not in lowered
    return True


def filter_chat_models(models: Iterable[str], provider: AIProvider | str) -> List[str]:
    """只保留文本生成类模型，排除 embedding / 语音 / 审核等专用模型。"""

    tag = parse_provider(provider)
    return [model for model in models if _is_chat_model(model, tag)]


def list_ai_models(
    provider: AIProvider | str,
    api_key: str,
    api_endpoint: Optional[str] = None,
    *,
    chat_only: bool = False,
    router: Optional[ProviderRouter] = None,
) -> List[str]:
    """
    查询提供商的可用模型，返回去重排序后的模型 ID。

    custom 直接返回空列表；上游非 2xx 时抛出 AIProviderAPIError。
    chat_only=True 时再按提供商过滤掉非对话模型。
    """

    tag = parse_provider(provider)
    if tag == AIProvider.CUSTOM:
        return []

    router = router or get_default_router()
    raw_models = router.list_models(tag, api_key, api_endpoint)
    if tag == AIProvider.GEMINI:
        raw_models = _strip_gemini_prefix(raw_models)

    models = normalize_model_ids(raw_models)
    if chat_only:
        models = filter_chat_models(models, tag)
    logger.debug("%s 模型列表共 %d 个", tag.value, len(models))
    return models


__all__ = ["filter_chat_models", "list_ai_models", "normalize_model_ids"]

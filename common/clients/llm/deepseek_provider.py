"""DeepSeek Provider，实现与 DeepSeek API 的对接。"""

from __future__ import annotations

from typing import Any, Dict

from common.domain import AIProvider

from .base import CompletionRequest
from .openai_provider import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """DeepSeek 接口与 OpenAI 兼容，参数不做模型名判断。"""

    name = AIProvider.DEEPSEEK
    display_name = "DeepSeek"
    default_base_url = "https://api.deepseek.com/v1"

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        return {
            "model": request.model,
            "messages": request.chat_messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }

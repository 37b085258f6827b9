"""OpenAI Provider 实现，负责和官方/代理 API 通讯。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from common.domain import AIProvider

from .base import AIResponse, CompletionRequest
from .http import HTTPProvider, resolve_base_url
from .schemas import ChatCompletionEnvelope


def uses_max_completion_tokens(model: str) -> bool:
    """GPT-4o、o1、gpt-5 等新模型使用 max_completion_tokens。"""

    return (
        "o1" in model
        or "gpt-4o" in model
        or model.startswith("o1-")
        or model.startswith("gpt-5")
    )


def supports_temperature(model: str) -> bool:
    """o1 / mini 系列不接受自定义 temperature。"""

    # "mini" 会命中所有带 mini 的模型名，并非只有 o1-mini
    return not ("o1" in model or model.startswith("o1-") or "mini" in model)


class OpenAIProvider(HTTPProvider):
    """封装 OpenAI Chat Completions 接口。"""

    name = AIProvider.OPENAI
    display_name = "OpenAI"
    default_base_url = "https://api.openai.com/v1"

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model,
            "messages": request.chat_messages(),
        }
        if supports_temperature(request.model):
            payload["temperature"] = request.temperature
        if uses_max_completion_tokens(request.model):
            payload["max_completion_tokens"] = request.max_tokens
        else:
            payload["max_tokens"] = request.max_tokens
        return payload

    def completions_url(self, endpoint: Optional[str]) -> str:
        return f"{resolve_base_url(endpoint, self.default_base_url)}/chat/completions"

    def complete(self, request: CompletionRequest) -> AIResponse:
        """构造标准 Chat Completions 请求并返回统一响应。"""

        headers = {"Authorization": f"Bearer {request.api_key}"}
        with self._client(headers) as client:
            response = client.post(
                self.completions_url(request.endpoint),
                json=self.build_payload(request),
            )
        self._raise_for_status(response)
        data = self._parse(response, ChatCompletionEnvelope)
        return AIResponse(
            content=data.choices[0].message.content or "",
            usage=data.usage.to_usage() if data.usage else None,
        )

    def list_models(self, api_key: str, endpoint: Optional[str] = None) -> List[Any]:
        base = resolve_base_url(endpoint, self.default_base_url)
        with self._client({"Authorization": f"Bearer {api_key}"}) as client:
            response = client.get(f"{base}/models")
        return self._model_entries(response, "data", "models")

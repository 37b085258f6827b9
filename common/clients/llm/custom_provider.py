"""自定义模型 Provider：OpenAI 兼容格式，endpoint 即完整的补全地址。"""

from __future__ import annotations

from typing import Any, List, Optional

from common.domain import AIProvider

from .base import AIResponse, AIResponseFormatError, CompletionRequest, MissingEndpointError
from .http import HTTPProvider
from .schemas import CustomCompletionEnvelope


class CustomProvider(HTTPProvider):
    name = AIProvider.CUSTOM
    display_name = "Custom"
    default_base_url = None

    def complete(self, request: CompletionRequest) -> AIResponse:
        if not request.endpoint:
            raise MissingEndpointError("自定义模型需要提供API端点地址(endpoint)")

        payload = {
            "model": request.model,
            "messages": request.chat_messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        with self._client({"Authorization": f"Bearer {request.api_key}"}) as client:
            response = client.post(request.endpoint, json=payload)
        self._raise_for_status(response)
        data = self._parse(response, CustomCompletionEnvelope)

        message = data.choices[0].message if data.choices else None
        content = message.content if message else None
        # choices 无文本时回退到 response
        if not content and data.response is not None:
            content = data.response
        if content is None:
            raise AIResponseFormatError("Custom API响应格式异常: 缺少 choices 或 response 字段")
        return AIResponse(
            content=content,
            usage=data.usage.to_usage() if data.usage else None,
        )

    def list_models(self, api_key: str, endpoint: Optional[str] = None) -> List[Any]:
        # 自定义模型由用户手动填写，无可枚举的列表
        return []

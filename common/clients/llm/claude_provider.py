"""Anthropic Claude Provider，调用 Messages API。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from common.domain import AIProvider

from .base import AIResponse, AIResponseFormatError, CompletionRequest
from .http import HTTPProvider, resolve_base_url
from .schemas import ClaudeMessageEnvelope

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeProvider(HTTPProvider):
    name = AIProvider.CLAUDE
    display_name = "Claude"
    default_base_url = "https://api.anthropic.com/v1"

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION}

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt
        return payload

    def complete(self, request: CompletionRequest) -> AIResponse:
        base = resolve_base_url(request.endpoint, self.default_base_url)
        with self._client(self._headers(request.api_key)) as client:
            response = client.post(f"{base}/messages", json=self.build_payload(request))
        self._raise_for_status(response)
        data = self._parse(response, ClaudeMessageEnvelope)
        text = data.content[0].text
        if text is None:
            raise AIResponseFormatError("Claude API响应格式异常: content[0] 缺少 text")
        return AIResponse(
            content=text,
            usage=data.usage.to_usage() if data.usage else None,
        )

    def list_models(self, api_key: str, endpoint: Optional[str] = None) -> List[Any]:
        base = resolve_base_url(endpoint, self.default_base_url)
        with self._client(self._headers(api_key)) as client:
            response = client.get(f"{base}/models")
        return self._model_entries(response, "data", "models")

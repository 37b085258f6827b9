"""Google Gemini Provider，API Key 通过 query 参数传递。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from common.domain import AIProvider

from .base import AIResponse, AIResponseFormatError, CompletionRequest
from .http import HTTPProvider, resolve_base_url
from .schemas import GeminiEnvelope


class GeminiProvider(HTTPProvider):
    name = AIProvider.GEMINI
    display_name = "Gemini"
    default_base_url = "https://generativelanguage.googleapis.com/v1"

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        # Gemini v1 没有独立的 system 字段，拼接到 prompt 前面
        if request.system_prompt:
            text = f"{request.system_prompt}\n\n{request.prompt}"
        else:
            text = request.prompt
        return {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
            },
        }

    def complete(self, request: CompletionRequest) -> AIResponse:
        base = resolve_base_url(request.endpoint, self.default_base_url)
        with self._client() as client:
            response = client.post(
                f"{base}/models/{request.model}:generateContent",
                params={"key": request.api_key},
                json=self.build_payload(request),
            )
        self._raise_for_status(response)
        data = self._parse(response, GeminiEnvelope)
        text = data.candidates[0].content.parts[0].text
        if text is None:
            raise AIResponseFormatError("Gemini API响应格式异常: parts[0] 缺少 text")
        return AIResponse(
            content=text,
            usage=data.usage_metadata.to_usage() if data.usage_metadata else None,
        )

    def list_models(self, api_key: str, endpoint: Optional[str] = None) -> List[Any]:
        base = resolve_base_url(endpoint, self.default_base_url)
        with self._client() as client:
            response = client.get(f"{base}/models", params={"key": api_key})
        return self._model_entries(response, "models", "data")

"""各 Provider 共用的 HTTP 封装：建连、错误解析、响应校验。"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .base import AIProviderAPIError, AIResponseFormatError, LLMProvider

DEFAULT_TIMEOUT = 60.0

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


def trim_trailing_slash(url: str) -> str:
    return url.rstrip("/")


def resolve_base_url(endpoint: Optional[str], default: str) -> str:
    """endpoint 为空时使用默认地址，并去掉末尾斜杠。"""

    if endpoint:
        return trim_trailing_slash(endpoint)
    return default


def safe_json(response: httpx.Response) -> Any:
    """尽力解析 JSON，失败返回 None。"""

    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def extract_error_message(body: Any) -> Optional[str]:
    """兼容 {"error": {"message": ...}} 与 {"error": "..."} 两种错误结构。"""

    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str) and error:
        return error
    message = body.get("message")
    return str(message) if message else None


class HTTPProvider(LLMProvider):
    """基于 httpx 的 Provider 基类，每次调用使用独立的短连接。"""

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._transport = transport
        self._timeout = timeout

    def _client(self, headers: Optional[Dict[str, str]] = None) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            headers=headers or {},
            transport=self._transport,
        )

    def _raise_for_status(self, response: httpx.Response, action: str = "API错误") -> None:
        """非 2xx 时抛出 AIProviderAPIError，消息形如 "OpenAI API错误: ..."。"""

        if response.is_success:
            return
        detail = extract_error_message(safe_json(response))
        if not detail:
            detail = response.reason_phrase or f"HTTP {response.status_code}"
        raise AIProviderAPIError(
            f"{self.display_name} {action}: {detail}",
            provider=self.name,
            status_code=response.status_code,
            detail=detail,
        )

    def _parse(self, response: httpx.Response, schema: Type[EnvelopeT]) -> EnvelopeT:
        """按厂商响应结构校验，缺少必需字段时抛出 AIResponseFormatError。"""

        body = safe_json(response)
        if body is None:
            raise AIResponseFormatError(f"{self.display_name} API响应格式异常: 响应不是有效的 JSON")
        try:
            return schema.model_validate(body)
        except ValidationError as exc:
            raise AIResponseFormatError(
                f"{self.display_name} API响应格式异常: {exc.error_count()} 个字段校验失败"
            ) from exc

    def _model_entries(self, response: httpx.Response, *keys: str) -> list:
        """依次尝试 data / models 等字段，返回原始模型条目列表。"""

        self._raise_for_status(response, action="模型列表获取失败")
        body = safe_json(response)
        if isinstance(body, dict):
            for key in keys:
                value = body.get(key)
                if value:
                    return value if isinstance(value, list) else []
            return []
        if isinstance(body, list):
            return body
        raise AIResponseFormatError(f"{self.display_name} 模型列表响应格式异常: 响应不是 JSON 对象或数组")


__all__ = [
    "DEFAULT_TIMEOUT",
    "HTTPProvider",
    "extract_error_message",
    "resolve_base_url",
    "safe_json",
    "trim_trailing_slash",
]

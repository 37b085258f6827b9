"""大模型 Provider 抽象，统一 OpenAI / DeepSeek / Claude / Gemini / 自定义接口。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from common.domain import AIProvider


DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000


class AIProviderError(RuntimeError):
    """LLM Provider 异常"""


class AIProviderAPIError(AIProviderError):
    """上游接口返回非 2xx。"""

    def __init__(
        self,
        message: str,
        *,
        provider: AIProvider,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.detail = detail


class AIResponseFormatError(AIProviderError):
    """上游响应结构与约定不符。"""


class MissingEndpointError(AIProviderError):
    """自定义模型缺少 API 端点。"""


class UnsupportedProviderError(ValueError):
    """未知的 provider 标识。"""

    def __init__(self, provider: object) -> None:
        value = provider.value if isinstance(provider, AIProvider) else provider
        super().__init__(f"不支持的AI提供商: {value}")
        self.provider = value


def parse_provider(value: AIProvider | str) -> AIProvider:
    """把字符串标识转换为 AIProvider，未知值抛出 UnsupportedProviderError。"""

    if isinstance(value, AIProvider):
        return value
    try:
        return AIProvider(value)
    except ValueError:
        raise UnsupportedProviderError(value) from None


@dataclass
class AIConfig:
    """一次调用使用的凭据与模型，api_key 始终为明文。"""

    provider: AIProvider
    model: str
    api_key: str = field(repr=False)
    api_endpoint: Optional[str] = None
    custom_provider_name: Optional[str] = None


@dataclass
class AICallParams:
    """网关调用参数。"""

    config: AIConfig
    prompt: str
    system_prompt: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass
class CompletionRequest:
    """传给具体 Provider 的归一化请求。"""

    api_key: str
    model: str
    prompt: str
    endpoint: Optional[str] = None
    system_prompt: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS

    @classmethod
    def from_params(cls, params: AICallParams) -> "CompletionRequest":
        config = params.config
        return cls(
            api_key=config.api_key,
            model=config.model,
            prompt=params.prompt,
            endpoint=config.api_endpoint,
            system_prompt=params.system_prompt,
            temperature=params.temperature,
            max_tokens=params.max_tokens,
        )

    def chat_messages(self) -> List[dict]:
        """OpenAI 兼容格式的 messages，system prompt 为空时省略。"""

        messages: List[dict] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": self.prompt})
        return messages


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass
class AIResponse:
    """统一封装模型输出；上游未返回用量时 usage 为 None。"""

    content: str
    usage: Optional[TokenUsage] = None


class LLMProvider(ABC):
    """所有 Provider 必须实现的接口."""

    name: AIProvider
    display_name: str
    default_base_url: Optional[str] = None

    @abstractmethod
    def complete(self, request: CompletionRequest) -> AIResponse:  # pragma: no cover - 接口定义
        """执行模型调用，返回统一结构。"""

    @abstractmethod
    def list_models(self, api_key: str, endpoint: Optional[str] = None) -> List[Any]:  # pragma: no cover - 接口定义
        """返回上游模型列表的原始条目（字符串或 dict），由调用方归一化。"""

    def close(self) -> None:
        """释放资源，默认无需处理。"""

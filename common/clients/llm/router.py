"""大模型 Provider 路由器，按 provider 标识分发到对应实现。"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx

from common.domain import AIProvider
from common.utils.config import get_settings

from .base import (
    AICallParams,
    AIResponse,
    CompletionRequest,
    LLMProvider,
    UnsupportedProviderError,
    parse_provider,
)
from .claude_provider import ClaudeProvider
from .custom_provider import CustomProvider
from .deepseek_provider import DeepSeekProvider
from .gemini_provider import GeminiProvider
from .http import DEFAULT_TIMEOUT
from .openai_provider import OpenAIProvider


class ProviderRouter:
    """维护 provider 注册表；不做重试与回退，失败直接抛给调用方。"""

    def __init__(self) -> None:
        self._registry: Dict[AIProvider, LLMProvider] = {}

    def register(self, provider: LLMProvider) -> None:
        """注册 Provider，名称使用实现类的 name 属性。"""

        self._registry[provider.name] = provider

    def get(self, provider: AIProvider | str) -> LLMProvider:
        tag = parse_provider(provider)
        implementation = self._registry.get(tag)
        if implementation is None:
            raise UnsupportedProviderError(tag)
        return implementation

    @property
    def providers(self) -> List[AIProvider]:
        return list(self._registry)

    def complete(self, params: AICallParams) -> AIResponse:
        provider = self.get(params.config.provider)
        return provider.complete(CompletionRequest.from_params(params))

    def list_models(
        self,
        provider: AIProvider | str,
        api_key: str,
        endpoint: Optional[str] = None,
    ) -> List[Any]:
        return self.get(provider).list_models(api_key, endpoint)

    def close(self) -> None:
        """关闭所有 Provider，释放资源。"""

        for provider in self._registry.values():
            provider.close()


def build_default_router(
    transport: Optional[httpx.BaseTransport] = None,
    timeout: Optional[float] = None,
) -> ProviderRouter:
    """注册全部内置 Provider。"""

    timeout = DEFAULT_TIMEOUT if timeout is None else timeout
    router = ProviderRouter()
    for provider_cls in (
        OpenAIProvider,
        DeepSeekProvider,
        ClaudeProvider,
        GeminiProvider,
        CustomProvider,
    ):
        router.register(provider_cls(transport=transport, timeout=timeout))
    return router


@lru_cache(maxsize=1)
def get_default_router() -> ProviderRouter:
    """进程级共享的路由器，超时时间取自 AI_REQUEST_TIMEOUT。"""

    return build_default_router(timeout=get_settings().ai_request_timeout)


__all__ = ["ProviderRouter", "build_default_router", "get_default_router"]

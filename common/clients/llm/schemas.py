"""各厂商响应结构定义，校验失败即视为响应格式异常。"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import TokenUsage


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")


# --- OpenAI 兼容 (OpenAI / DeepSeek / 自定义) ---


class ChatMessage(_Envelope):
    role: Optional[str] = None
    content: Optional[str] = None


class ChatChoice(_Envelope):
    message: ChatMessage


class ChatUsage(_Envelope):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def to_usage(self) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_tokens or 0,
            completion_tokens=self.completion_tokens or 0,
            total_tokens=self.total_tokens or 0,
        )


class ChatCompletionEnvelope(_Envelope):
    choices: List[ChatChoice] = Field(..., min_length=1)
    usage: Optional[ChatUsage] = None


class CustomChoice(_Envelope):
    message: Optional[ChatMessage] = None


class CustomCompletionEnvelope(_Envelope):
    """自定义端点可能返回 choices，也可能只有 response 字段。"""

    choices: Optional[List[CustomChoice]] = None
    response: Optional[str] = None
    usage: Optional[ChatUsage] = None


# --- Anthropic Claude ---


class ClaudeContentBlock(_Envelope):
    type: Optional[str] = None
    text: Optional[str] = None


class ClaudeUsage(_Envelope):
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None

    def to_usage(self) -> TokenUsage:
        prompt = self.input_tokens or 0
        completion = self.output_tokens or 0
        return TokenUsage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )


class ClaudeMessageEnvelope(_Envelope):
    content: List[ClaudeContentBlock] = Field(..., min_length=1)
    usage: Optional[ClaudeUsage] = None


# --- Google Gemini ---


class GeminiPart(_Envelope):
    text: Optional[str] = None


class GeminiContent(_Envelope):
    parts: List[GeminiPart] = Field(..., min_length=1)


class GeminiCandidate(_Envelope):
    content: GeminiContent


class GeminiUsageMetadata(_Envelope):
    prompt_token_count: Optional[int] = Field(default=None, alias="promptTokenCount")
    candidates_token_count: Optional[int] = Field(default=None, alias="candidatesTokenCount")
    total_token_count: Optional[int] = Field(default=None, alias="totalTokenCount")

    def to_usage(self) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_token_count or 0,
            completion_tokens=self.candidates_token_count or 0,
            total_tokens=self.total_token_count or 0,
        )


class GeminiEnvelope(_Envelope):
    candidates: List[GeminiCandidate] = Field(..., min_length=1)
    usage_metadata: Optional[GeminiUsageMetadata] = Field(default=None, alias="usageMetadata")


__all__ = [
    "ChatCompletionEnvelope",
    "CustomCompletionEnvelope",
    "ClaudeMessageEnvelope",
    "GeminiEnvelope",
]

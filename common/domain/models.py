"""Domain enumerations shared across modules."""

from enum import Enum


class AIProvider(str, Enum):
    """Supported AI providers."""

    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    CLAUDE = "claude"
    GEMINI = "gemini"
    CUSTOM = "custom"


class AIConfigMode(str, Enum):
    """Credential pool funding an AI call."""

    CREDITS = "credits"
    SUBSCRIPTION = "subscription"
    CUSTOM = "custom"

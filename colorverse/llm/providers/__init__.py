"""LLM provider descriptors for ColorVerse."""

from .base import AuthMethod, ProviderDescriptor
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider
from .registry import PROVIDER_PRIORITY, build_default_registry, validate_priority

__all__ = [
    "AuthMethod",
    "ProviderDescriptor",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "PROVIDER_PRIORITY",
    "build_default_registry",
    "validate_priority",
]

"""Multi-provider LLM access for ColorVerse.

This package provides:
- Provider descriptors for Pollinations, OpenRouter and Google Gemini
- Per-provider availability tracking with a recovery window
- Model ordering by success history
- Retries with backoff and provider/model fallback
- An aiohttp transport and normalized request/response models
"""

from .exceptions import (
    AllProvidersFailedError,
    ErrorKind,
    JSONExtractionError,
    LLMError,
    MalformedResponseError,
    ProviderError,
    QuotaExceededError,
    RateLimitError,
    RetriesExhaustedError,
    ServerError,
    TransportError,
    UnauthorizedError,
    classify_status,
)
from .json_utils import extract_json
from .manager import MultiProviderAIManager, create_manager
from .models import (
    ChatMessage,
    CompletionOptions,
    CompletionRequest,
    CompletionResult,
    TokenUsage,
)
from .providers import (
    AuthMethod,
    GeminiProvider,
    OpenAICompatibleProvider,
    PROVIDER_PRIORITY,
    ProviderDescriptor,
    build_default_registry,
)
from .retry import AttemptOutcome, RetryConfig, RetryEngine
from .selector import ModelSelector, rank_models
from .status import ProviderStatus, ProviderStatusTracker
from .transport import HTTPTransport

__all__ = [
    # Manager
    "MultiProviderAIManager",
    "create_manager",

    # Models
    "ChatMessage",
    "CompletionOptions",
    "CompletionRequest",
    "CompletionResult",
    "TokenUsage",

    # Providers
    "AuthMethod",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "PROVIDER_PRIORITY",
    "ProviderDescriptor",
    "build_default_registry",

    # Fallback machinery
    "AttemptOutcome",
    "HTTPTransport",
    "ModelSelector",
    "ProviderStatus",
    "ProviderStatusTracker",
    "RetryConfig",
    "RetryEngine",
    "rank_models",
    "extract_json",

    # Errors
    "AllProvidersFailedError",
    "ErrorKind",
    "JSONExtractionError",
    "LLMError",
    "MalformedResponseError",
    "ProviderError",
    "QuotaExceededError",
    "RateLimitError",
    "RetriesExhaustedError",
    "ServerError",
    "TransportError",
    "UnauthorizedError",
    "classify_status",
]

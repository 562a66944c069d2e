"""Default provider table and priority order for ColorVerse."""

from typing import Dict, Iterable, List, Optional

from .base import ProviderDescriptor
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider

DEFAULT_REFERRER = "dseeker.github.io"

# Fallback order: free gateway first, then keyed providers
PROVIDER_PRIORITY: List[str] = ["pollinations", "openrouter", "gemini"]

# Ordered by quality/reliability
POLLINATIONS_MODELS = [
    "openai",        # GPT-4o Mini
    "openai-fast",   # GPT-4.1 Nano
    "openai-large",  # GPT-4o
    "mistral",       # Mistral Small 3.1 24B
    "gemini-fast",   # Gemini 2.0 Flash via Pollinations
    "gemini",        # Gemini 2.5 Flash
    "llamascout",    # Llama 4 Scout 17B
    "llama-roblox",  # Llama 3.1 8B
    "phi",           # Phi-4 Mini
]

OPENROUTER_FREE_MODELS = [
    "meta-llama/llama-3.3-8b-instruct:free",
    "mistralai/mistral-7b-instruct:free",
    "google/gemma-2-9b-it:free",
    "qwen/qwen-2.5-72b-instruct:free",
    "microsoft/phi-4:free",
]

GEMINI_MODELS = [
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
]


def build_default_registry(referrer: Optional[str] = None) -> Dict[str, ProviderDescriptor]:
    """Create the standard provider descriptors keyed by provider id.

    Args:
        referrer: Referrer id sent to Pollinations

    Returns:
        Dict mapping provider ids to descriptors
    """
    providers: List[ProviderDescriptor] = [
        OpenAICompatibleProvider(
            provider_id="pollinations",
            name="Pollinations",
            base_url="https://gen.pollinations.ai",
            endpoint="/v1/chat/completions",
            models=POLLINATIONS_MODELS,
            # Works anonymously; a key only raises limits
            requires_auth=False,
            api_key_env="POLLINATIONS_API_KEY",
            extra_body={"referrer": referrer or DEFAULT_REFERRER},
        ),
        OpenAICompatibleProvider(
            provider_id="openrouter",
            name="OpenRouter",
            base_url="https://openrouter.ai/api/v1",
            models=OPENROUTER_FREE_MODELS,
            requires_auth=True,
            api_key_env="OPENROUTER_API_KEY",
            extra_headers={
                "HTTP-Referer": "https://dseeker.github.io",
                "X-Title": "ColorVerse",
            },
            default_max_tokens=4096,
        ),
        GeminiProvider(
            models=GEMINI_MODELS,
            api_key_env="GOOGLE_GEMINI_API_KEY",
        ),
    ]
    return {provider.id: provider for provider in providers}


def validate_priority(
    priority: Iterable[str],
    registry: Dict[str, ProviderDescriptor],
) -> List[str]:
    """Check a priority order against a registry.

    Raises:
        ValueError: If the order names an unknown provider or repeats one
    """
    order = list(priority)
    unknown = [name for name in order if name not in registry]
    if unknown:
        raise ValueError(f"Unknown provider(s) in priority order: {', '.join(unknown)}")
    if len(set(order)) != len(order):
        raise ValueError("Provider priority order contains duplicates")
    return order

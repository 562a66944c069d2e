"""ColorVerse: AI text completions for an AI-generated coloring-page site.

Provides a multi-provider completion manager that falls back across
providers and models, retries transient failures with backoff, and benches
providers that keep failing.
"""

__version__ = "0.1.0"
__author__ = "ColorVerse Team"
__license__ = "MIT"

# Core imports for public API
from colorverse.llm import (
    AllProvidersFailedError,
    CompletionResult,
    MultiProviderAIManager,
    create_manager,
)
from colorverse.config import ColorVerseConfig, load_config

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "AllProvidersFailedError",
    "CompletionResult",
    "MultiProviderAIManager",
    "create_manager",
    "ColorVerseConfig",
    "load_config",
]

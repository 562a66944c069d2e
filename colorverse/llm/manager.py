"""Multi-provider AI manager with provider- and model-level fallback.

Walks the configured providers in priority order, tries each provider's
candidate models through the retry engine and returns the first successful
completion. Rate-limited or quota-exhausted providers are skipped as a whole;
providers failing repeatedly are benched for a recovery window.

Example:
    async with MultiProviderAIManager() as manager:
        result = await manager.create_completion(
            [{"role": "user", "content": "Suggest a coloring page theme"}],
            {"temperature": 0.7},
        )
        print(result.provider, result.content)
"""

import asyncio
import logging
import os
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .exceptions import AllProvidersFailedError, is_provider_level
from .json_utils import extract_json
from .models import ChatMessage, CompletionOptions, CompletionRequest, CompletionResult
from .providers.base import ProviderDescriptor
from .providers.registry import PROVIDER_PRIORITY, build_default_registry, validate_priority
from .retry import RetryConfig, RetryEngine, SleepFunc, Transport
from .selector import MAX_MODELS_PER_PROVIDER, ModelSelector
from .status import (
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_RECOVERY_WINDOW,
    ProviderStatusTracker,
)
from .transport import HTTPTransport

logger = logging.getLogger(__name__)

MessagesInput = Sequence[Union[ChatMessage, Dict[str, Any]]]
OptionsInput = Optional[Union[CompletionOptions, Dict[str, Any]]]


class MultiProviderAIManager:
    """Completion client that falls back across providers and models.

    Each instance owns its own status tracker, so separate managers never
    share availability state.
    """

    def __init__(
        self,
        providers: Optional[Mapping[str, ProviderDescriptor]] = None,
        provider_priority: Optional[Sequence[str]] = None,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[Transport] = None,
        api_keys: Optional[Mapping[str, Optional[str]]] = None,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        recovery_window: float = DEFAULT_RECOVERY_WINDOW,
        max_models_per_provider: int = MAX_MODELS_PER_PROVIDER,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """Initialize the manager.

        Args:
            providers: Provider descriptors keyed by id, default registry if omitted
            provider_priority: Fallback order, defaults to the registry order
            retry_config: Retry and delay settings
            transport: Object performing the HTTP calls
            api_keys: Credentials keyed by provider id; providers missing here
                fall back to their environment variable at call time
            failure_threshold: Consecutive failures before a provider is benched
            recovery_window: Seconds before a benched provider is retried
            max_models_per_provider: Cap on models tried per provider
            clock: Time source in epoch seconds
            sleep: Async sleep used for every delay
        """
        self.providers: Dict[str, ProviderDescriptor] = dict(
            providers if providers is not None else build_default_registry()
        )
        if provider_priority is None:
            provider_priority = [p for p in PROVIDER_PRIORITY if p in self.providers] or list(
                self.providers
            )
        self.provider_priority = validate_priority(provider_priority, self.providers)
        self.retry_config = retry_config or RetryConfig()

        self._transport = transport or HTTPTransport()
        self._api_keys: Dict[str, Optional[str]] = dict(api_keys or {})
        self._sleep = sleep or asyncio.sleep

        self.tracker = ProviderStatusTracker(
            self.provider_priority,
            failure_threshold=failure_threshold,
            recovery_window=recovery_window,
            clock=clock,
        )
        self.selector = ModelSelector(self.tracker, limit=max_models_per_provider)
        self.retry_engine = RetryEngine(self._transport, self.retry_config, sleep=self._sleep)

        logger.info(
            f"Initialized MultiProviderAIManager with priority="
            f"{' -> '.join(self.provider_priority)}"
        )

    # ========================================================================
    # Credentials
    # ========================================================================

    def get_api_key(self, provider_id: str) -> Optional[str]:
        """Resolve a provider credential at call time."""
        if self._api_keys.get(provider_id):
            return self._api_keys[provider_id]
        provider = self.providers[provider_id]
        if provider.api_key_env:
            return os.getenv(provider.api_key_env) or None
        return None

    def has_credentials(self, provider_id: str) -> bool:
        provider = self.providers[provider_id]
        return not provider.requires_auth or bool(self.get_api_key(provider_id))

    # ========================================================================
    # Provider Selection
    # ========================================================================

    def get_available_providers(self) -> List[str]:
        """Providers to try, in priority order.

        Excludes providers missing a mandatory credential and providers
        benched by the status tracker (after applying the recovery window).
        """
        now = self.tracker.now()
        available = []
        for provider_id in self.provider_priority:
            # Evaluated first so the recovery window is applied even for
            # providers that are then skipped for a missing key
            is_up = self.tracker.is_available(provider_id, now)
            if not self.has_credentials(provider_id):
                logger.debug(f"Skipping '{provider_id}' - no API key configured")
                continue
            if is_up:
                available.append(provider_id)
        return available

    def _candidate_models(self, provider: ProviderDescriptor, request: CompletionRequest) -> List[str]:
        if request.options.model:
            return [request.options.model]
        return self.selector.select_models(provider)

    # ========================================================================
    # Main Completion Method
    # ========================================================================

    async def create_completion(
        self,
        messages: MessagesInput,
        options: OptionsInput = None,
        **option_overrides: Any,
    ) -> CompletionResult:
        """Create a chat completion with automatic fallback.

        Args:
            messages: Chat messages as dicts (``role``/``content``) or ChatMessage
            options: Generation options (``model``, ``temperature``,
                ``max_tokens``, ``json``) as a dict or CompletionOptions
            **option_overrides: Individual options overriding ``options``

        Returns:
            CompletionResult from the first successful provider/model

        Raises:
            AllProvidersFailedError: If every provider, model and retry failed
        """
        request = CompletionRequest.build(messages, options, **option_overrides)
        return await self.complete(request)

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """Run the fallback chain for an already-built request."""
        providers_to_try = self.get_available_providers()

        if not providers_to_try:
            logger.error("No AI providers available")
            raise AllProvidersFailedError(message="No AI providers available")

        logger.info(f"Fallback chain: {' -> '.join(providers_to_try)}")

        errors: Dict[str, Exception] = {}
        last_error: Optional[Exception] = None

        for provider_id in providers_to_try:
            result, error = await self._try_provider(self.providers[provider_id], request)
            if result is not None:
                logger.info(f"Success with {provider_id}/{result.model}")
                return result

            if error is not None:
                errors[provider_id] = error
                last_error = error
            logger.warning(f"'{provider_id}' failed, trying next provider...")

        logger.error("All AI providers failed")
        raise AllProvidersFailedError(errors=errors, last_error=last_error) from last_error

    async def _try_provider(
        self,
        provider: ProviderDescriptor,
        request: CompletionRequest,
    ):
        """Try every candidate model of one provider.

        Returns:
            Tuple of (result or None, last error or None)
        """
        api_key = self.get_api_key(provider.id)
        models = self._candidate_models(provider, request)
        last_error: Optional[Exception] = None

        for index, model in enumerate(models):
            outcome = await self.retry_engine.attempt_model(provider, model, request, api_key)

            if outcome.success:
                self.tracker.record_success(provider.id, model)
                return outcome.result, None

            self.tracker.record_failure(provider.id)
            last_error = outcome.error

            if is_provider_level(outcome.error):
                logger.info(
                    f"'{provider.id}' rate limited/quota exceeded, moving to next provider"
                )
                break

            if index < len(models) - 1:
                await self._sleep(self.retry_config.model_fallback_delay / 1000)

        return None, last_error

    async def create_json_completion(
        self,
        messages: MessagesInput,
        options: OptionsInput = None,
        **option_overrides: Any,
    ) -> Any:
        """Create a completion in JSON mode and decode its content.

        Raises:
            AllProvidersFailedError: If every provider failed
            JSONExtractionError: If the content holds no valid JSON
        """
        option_overrides["json_mode"] = True
        result = await self.create_completion(messages, options, **option_overrides)
        return extract_json(result.content)

    # ========================================================================
    # Status & Reset
    # ========================================================================

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of every provider's state, for debugging."""
        snapshot = self.tracker.snapshot()
        return {
            "providers": [
                {
                    "name": provider_id,
                    "display_name": self.providers[provider_id].name,
                    "has_api_key": bool(self.get_api_key(provider_id)),
                    **snapshot[provider_id],
                }
                for provider_id in self.provider_priority
            ]
        }

    def reset(self, provider_id: Optional[str] = None) -> None:
        """Restore one or all providers to their initial state."""
        if provider_id is None:
            self.tracker.reset_all()
        else:
            self.tracker.reset(provider_id)
            logger.info(f"Reset status for '{provider_id}'")

    # ========================================================================
    # Context Manager
    # ========================================================================

    async def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "MultiProviderAIManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_manager(
    api_keys: Optional[Mapping[str, Optional[str]]] = None,
    provider_priority: Optional[Sequence[str]] = None,
    retry_config: Optional[RetryConfig] = None,
    referrer: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
) -> MultiProviderAIManager:
    """Factory function to create a manager over the default providers.

    Example:
        manager = create_manager(
            api_keys={"openrouter": "sk-or-..."},
            provider_priority=["openrouter", "pollinations"],
        )
    """
    transport = HTTPTransport(timeout_seconds) if timeout_seconds else HTTPTransport()
    return MultiProviderAIManager(
        providers=build_default_registry(referrer=referrer),
        provider_priority=provider_priority,
        retry_config=retry_config,
        transport=transport,
        api_keys=api_keys,
    )



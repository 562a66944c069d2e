"""Bounded retries with backoff for a single provider/model pair."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Protocol

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import RetriesExhaustedError, is_retryable
from .models import CompletionRequest, CompletionResult
from .providers.base import ProviderDescriptor

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class RetryConfig(BaseSettings):
    """Retry and fallback timing.

    All delays are in milliseconds. Values can be overridden via environment
    variables with the COLORVERSE_RETRY_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="COLORVERSE_RETRY_", frozen=True)

    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per model before moving on"
    )
    backoff_delays: List[int] = Field(
        default_factory=lambda: [10000, 30000, 60000],
        description="Delay before each retry; the last value is reused"
    )
    model_fallback_delay: int = Field(
        default=2000,
        ge=0,
        description="Pause between models of the same provider"
    )
    provider_fallback_delay: int = Field(
        default=5000,
        ge=0,
        description="Documented pause between providers; not applied"
    )

    @field_validator("backoff_delays")
    @classmethod
    def validate_backoff_delays(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("backoff_delays must not be empty")
        if any(delay < 0 for delay in v):
            raise ValueError("backoff_delays must not be negative")
        return v

    def backoff_for(self, attempt: int) -> int:
        """Delay in ms after the given zero-based attempt."""
        delays = self.backoff_delays
        return delays[min(attempt, len(delays) - 1)]


class Transport(Protocol):
    async def send(
        self,
        provider: ProviderDescriptor,
        model: str,
        request: CompletionRequest,
        api_key: Optional[str] = None,
    ) -> CompletionResult: ...


@dataclass
class AttemptOutcome:
    """Result of trying one model."""
    success: bool
    result: Optional[CompletionResult] = None
    error: Optional[Exception] = None
    attempts: int = 0


class RetryEngine:
    """Retries one provider/model pair with exponential backoff."""

    def __init__(
        self,
        transport: Transport,
        config: Optional[RetryConfig] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self._transport = transport
        self.config = config or RetryConfig()
        self._sleep = sleep or asyncio.sleep

    async def attempt_model(
        self,
        provider: ProviderDescriptor,
        model: str,
        request: CompletionRequest,
        api_key: Optional[str] = None,
    ) -> AttemptOutcome:
        """Try a model up to ``max_retries`` times.

        Unauthorized, rate-limited and quota errors end the loop at once.
        Anything else is retried after the configured backoff.

        Returns:
            AttemptOutcome holding either the result or the terminal error
        """
        max_retries = self.config.max_retries
        last_error: Optional[Exception] = None

        for attempt in range(max_retries):
            try:
                logger.info(
                    f"Using {provider.id}/{model} (attempt {attempt + 1}/{max_retries})"
                )
                result = await self._transport.send(provider, model, request, api_key)
                return AttemptOutcome(success=True, result=result, attempts=attempt + 1)

            except Exception as e:
                last_error = e
                logger.warning(
                    f"{provider.id}/{model} attempt {attempt + 1} failed: {e}"
                )

                if not is_retryable(e):
                    return AttemptOutcome(success=False, error=e, attempts=attempt + 1)

                if attempt < max_retries - 1:
                    delay = self.config.backoff_for(attempt)
                    logger.info(f"Waiting {delay}ms before retry...")
                    await self._sleep(delay / 1000)

        return AttemptOutcome(
            success=False,
            error=RetriesExhaustedError(provider.id, model, max_retries, last_error),
            attempts=max_retries,
        )

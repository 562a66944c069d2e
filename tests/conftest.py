"""Global test fixtures for ColorVerse test suite."""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from unittest.mock import AsyncMock

import pytest

from colorverse.llm.exceptions import error_for_status
from colorverse.llm.manager import MultiProviderAIManager
from colorverse.llm.models import CompletionRequest, CompletionResult
from colorverse.llm.providers import OpenAICompatibleProvider, ProviderDescriptor
from colorverse.llm.retry import RetryConfig


# ==========================================
# Pytest Configuration
# ==========================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


# ==========================================
# Fake Transport
# ==========================================

Outcome = Union[CompletionResult, Exception, int]


class FakeTransport:
    """Transport returning scripted outcomes per provider/model.

    An outcome is a CompletionResult, an exception to raise, or an HTTP
    status code that is turned into the matching classified error. The last
    outcome in a script repeats once the script runs out.
    """

    def __init__(self, default: Optional[Outcome] = None):
        self.scripts: Dict[Tuple[str, Optional[str]], List[Outcome]] = {}
        self.default = default
        self.calls: List[Tuple[str, str]] = []
        self.requests: List[CompletionRequest] = []
        self.api_keys: List[Optional[str]] = []
        self.closed = False

    def script(self, provider_id: str, *outcomes: Outcome, model: Optional[str] = None) -> None:
        """Script outcomes for a provider (all models) or a single model."""
        self.scripts[(provider_id, model)] = list(outcomes)

    def calls_for(self, provider_id: str) -> List[str]:
        return [model for provider, model in self.calls if provider == provider_id]

    def _next_outcome(self, provider_id: str, model: str) -> Outcome:
        for key in ((provider_id, model), (provider_id, None)):
            script = self.scripts.get(key)
            if script:
                return script.pop(0) if len(script) > 1 else script[0]
        if self.default is None:
            raise AssertionError(f"No outcome scripted for {provider_id}/{model}")
        return self.default

    async def send(
        self,
        provider: ProviderDescriptor,
        model: str,
        request: CompletionRequest,
        api_key: Optional[str] = None,
    ) -> CompletionResult:
        self.calls.append((provider.id, model))
        self.requests.append(request)
        self.api_keys.append(api_key)

        outcome = self._next_outcome(provider.id, model)
        if isinstance(outcome, int):
            raise error_for_status(outcome, provider.id, model=model)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome.model_copy(update={"model": model, "provider": provider.id})

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ==========================================
# Fixtures
# ==========================================

@pytest.fixture
def retry_config():
    """Retry configuration with the real shape but no waiting."""
    return RetryConfig(
        max_retries=3,
        backoff_delays=[10, 30, 60],
        model_fallback_delay=2,
        provider_fallback_delay=5,
    )


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    """Async sleep stand-in recording requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_provider() -> Callable[..., OpenAICompatibleProvider]:
    """Factory for OpenAI-compatible test providers."""

    def _make(
        provider_id: str,
        models: Optional[List[str]] = None,
        requires_auth: bool = False,
        **kwargs: Any,
    ) -> OpenAICompatibleProvider:
        return OpenAICompatibleProvider(
            provider_id=provider_id,
            name=provider_id.title(),
            base_url=f"https://{provider_id}.example.com/v1",
            models=models or [f"{provider_id}-model-a", f"{provider_id}-model-b"],
            requires_auth=requires_auth,
            api_key_env=f"{provider_id.upper()}_TEST_API_KEY",
            **kwargs,
        )

    return _make


@pytest.fixture
def two_providers(make_provider):
    """Registry of two keyless providers."""
    return {
        "provider1": make_provider("provider1"),
        "provider2": make_provider("provider2"),
    }


@pytest.fixture
def manager(two_providers, fake_transport, retry_config, fake_clock, fake_sleep):
    """Manager over two fake providers with no real waiting."""
    return MultiProviderAIManager(
        providers=two_providers,
        provider_priority=["provider1", "provider2"],
        retry_config=retry_config,
        transport=fake_transport,
        clock=fake_clock,
        sleep=fake_sleep,
    )

"""Unit tests for the retry engine."""

import pytest
from pydantic import ValidationError

from colorverse.llm.exceptions import (
    ErrorKind,
    QuotaExceededError,
    RateLimitError,
    RetriesExhaustedError,
    ServerError,
    UnauthorizedError,
)
from colorverse.llm.models import CompletionRequest, CompletionResult
from colorverse.llm.retry import RetryConfig, RetryEngine


@pytest.fixture
def request_():
    return CompletionRequest.build([{"role": "user", "content": "hello"}])


@pytest.fixture
def provider(make_provider):
    return make_provider("alpha")


@pytest.fixture
def engine(fake_transport, retry_config, fake_sleep):
    return RetryEngine(fake_transport, retry_config, sleep=fake_sleep)


# ============================================================================
# Configuration
# ============================================================================


class TestRetryConfig:
    """Test retry configuration."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.backoff_delays == [10000, 30000, 60000]
        assert config.model_fallback_delay == 2000
        assert config.provider_fallback_delay == 5000

    def test_backoff_reuses_last_delay(self):
        config = RetryConfig(backoff_delays=[100, 200])
        assert config.backoff_for(0) == 100
        assert config.backoff_for(1) == 200
        assert config.backoff_for(5) == 200

    def test_empty_backoff_rejected(self):
        with pytest.raises(ValidationError):
            RetryConfig(backoff_delays=[])

    def test_negative_backoff_rejected(self):
        with pytest.raises(ValidationError):
            RetryConfig(backoff_delays=[100, -1])

    def test_zero_retries_rejected(self):
        with pytest.raises(ValidationError):
            RetryConfig(max_retries=0)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("COLORVERSE_RETRY_MAX_RETRIES", "5")
        monkeypatch.setenv("COLORVERSE_RETRY_BACKOFF_DELAYS", "[1, 2]")
        config = RetryConfig()
        assert config.max_retries == 5
        assert config.backoff_delays == [1, 2]


# ============================================================================
# Retry Engine
# ============================================================================


class TestRetryEngine:
    """Test attempts and backoff for one model."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, engine, fake_transport, provider, request_, fake_sleep):
        fake_transport.script("alpha", CompletionResult(content="ok"))

        outcome = await engine.attempt_model(provider, "alpha-model-a", request_)

        assert outcome.success is True
        assert outcome.attempts == 1
        assert outcome.result.content == "ok"
        fake_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backoff_before_each_retry(self, engine, fake_transport, provider, request_, fake_sleep):
        fake_transport.script("alpha", 500, 503, CompletionResult(content="third time"))

        outcome = await engine.attempt_model(provider, "alpha-model-a", request_)

        assert outcome.success is True
        assert outcome.attempts == 3
        assert [c.args[0] for c in fake_sleep.await_args_list] == [0.01, 0.03]

    @pytest.mark.asyncio
    async def test_exhaustion(self, engine, fake_transport, provider, request_, fake_sleep):
        fake_transport.script("alpha", 500)

        outcome = await engine.attempt_model(provider, "alpha-model-a", request_)

        assert outcome.success is False
        assert outcome.attempts == 3
        assert len(fake_transport.calls) == 3
        # No wait after the final attempt
        assert fake_sleep.await_count == 2
        assert isinstance(outcome.error, RetriesExhaustedError)
        assert isinstance(outcome.error.last_error, ServerError)
        assert outcome.error.__cause__ is outcome.error.last_error
        assert outcome.error.kind == ErrorKind.SERVER_ERROR

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_cls",
        [(401, UnauthorizedError), (403, QuotaExceededError), (429, RateLimitError)],
    )
    async def test_terminal_statuses_not_retried(
        self, engine, fake_transport, provider, request_, fake_sleep, status, error_cls
    ):
        fake_transport.script("alpha", status)

        outcome = await engine.attempt_model(provider, "alpha-model-a", request_)

        assert outcome.success is False
        assert outcome.attempts == 1
        assert isinstance(outcome.error, error_cls)
        assert outcome.error.status == status
        fake_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unclassified_exception_retried(self, engine, fake_transport, provider, request_):
        fake_transport.script("alpha", RuntimeError("boom"), CompletionResult(content="ok"))

        outcome = await engine.attempt_model(provider, "alpha-model-a", request_)

        assert outcome.success is True
        assert outcome.attempts == 2

    @pytest.mark.asyncio
    async def test_single_attempt_config(self, fake_transport, provider, request_, fake_sleep):
        engine = RetryEngine(fake_transport, RetryConfig(max_retries=1), sleep=fake_sleep)
        fake_transport.script("alpha", 502)

        outcome = await engine.attempt_model(provider, "alpha-model-a", request_)

        assert outcome.attempts == 1
        assert isinstance(outcome.error, RetriesExhaustedError)
        fake_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_key_passed_through(self, engine, fake_transport, provider, request_):
        fake_transport.script("alpha", CompletionResult())

        await engine.attempt_model(provider, "alpha-model-a", request_, api_key="secret")

        assert fake_transport.api_keys == ["secret"]

"""Integration tests for the full fallback path.

Runs the manager with the real HTTPTransport over a fake aiohttp session
that answers per URL, so wire formatting, status classification, retries
and fallback are exercised together.
"""

import json
from typing import Dict, List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from colorverse.llm.exceptions import AllProvidersFailedError, RateLimitError
from colorverse.llm.manager import MultiProviderAIManager
from colorverse.llm.providers import GeminiProvider
from colorverse.llm.transport import HTTPTransport

pytestmark = pytest.mark.integration

HELLO = [{"role": "user", "content": "Say hello"}]


class FakeSession:
    """aiohttp session stand-in answering by URL prefix."""

    def __init__(self, routes: Dict[str, Tuple[int, object]]):
        self.routes = routes
        self.posts: List[dict] = []
        self.closed = False

    def post(self, url, headers=None, params=None, json=None, timeout=None):
        self.posts.append({"url": url, "headers": headers, "params": params, "json": json})
        for prefix, (status, body) in self.routes.items():
            if url.startswith(prefix):
                break
        else:
            raise AssertionError(f"Unexpected URL {url}")

        response = MagicMock()
        response.status = status
        response.text = AsyncMock(
            return_value=body if isinstance(body, str) else _dumps(body)
        )
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)
        return context

    def urls(self, prefix: str) -> List[str]:
        return [p["url"] for p in self.posts if p["url"].startswith(prefix)]

    async def close(self):
        self.closed = True


def _dumps(body) -> str:
    return json.dumps(body)


def make_manager(providers, session, retry_config, fake_sleep, **kwargs):
    return MultiProviderAIManager(
        providers=providers,
        provider_priority=list(providers),
        retry_config=retry_config,
        transport=HTTPTransport(session=session),
        sleep=fake_sleep,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_server_errors_fall_through_to_next_provider(
    two_providers, retry_config, fake_sleep
):
    session = FakeSession({
        "https://provider1.example.com": (500, "Internal Server Error"),
        "https://provider2.example.com": (200, {"choices": [{"message": {"content": "hi"}}]}),
    })
    manager = make_manager(two_providers, session, retry_config, fake_sleep)

    result = await manager.create_completion(HELLO)

    assert result.content == "hi"
    assert result.provider == "provider2"
    assert result.model == "provider2-model-a"
    # Both models of provider1, max_retries attempts each
    assert len(session.urls("https://provider1.example.com")) == 2 * retry_config.max_retries
    assert len(session.urls("https://provider2.example.com")) == 1

    delays = [c.args[0] for c in fake_sleep.await_args_list]
    # Backoff within each model plus one pause between the two models
    assert delays == [0.01, 0.03, 0.002, 0.01, 0.03]


@pytest.mark.asyncio
async def test_all_rate_limited(two_providers, retry_config, fake_sleep):
    session = FakeSession({
        "https://provider1.example.com": (429, "Too Many Requests"),
        "https://provider2.example.com": (429, "Too Many Requests"),
    })
    manager = make_manager(two_providers, session, retry_config, fake_sleep)

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await manager.create_completion(HELLO)

    assert len(session.posts) == 2
    assert isinstance(exc_info.value.last_error, RateLimitError)
    assert "Too Many Requests" in str(exc_info.value)
    fake_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_gemini_fallback_with_query_key(make_provider, retry_config, fake_sleep, monkeypatch):
    monkeypatch.delenv("GOOGLE_GEMINI_API_KEY", raising=False)
    providers = {
        "gateway": make_provider("gateway", models=["g1"]),
        "gemini": GeminiProvider(models=["gemini-2.0-flash"], api_key_env="GOOGLE_GEMINI_API_KEY"),
    }
    session = FakeSession({
        "https://gateway.example.com": (403, "quota exceeded"),
        "https://generativelanguage.googleapis.com": (
            200,
            {
                "candidates": [{"content": {"parts": [{"text": "Hello from Gemini"}]}}],
                "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 4, "totalTokenCount": 7},
            },
        ),
    })
    manager = make_manager(providers, session, retry_config, fake_sleep, api_keys={"gemini": "gm-key"})

    result = await manager.create_completion(
        [{"role": "system", "content": "Be cheerful"}] + HELLO
    )

    assert result.provider == "gemini"
    assert result.model == "gemini-2.0-flash"
    assert result.content == "Hello from Gemini"
    assert result.usage.total_tokens == 7

    gemini_post = session.posts[-1]
    assert gemini_post["params"] == {"key": "gm-key"}
    assert gemini_post["json"]["systemInstruction"] == {"parts": [{"text": "Be cheerful"}]}
    assert manager.tracker.get("gateway").consecutive_failures == 1


@pytest.mark.asyncio
async def test_benched_provider_skipped_on_next_call(two_providers, retry_config, fake_sleep, fake_clock):
    session = FakeSession({
        "https://provider1.example.com": (401, "Unauthorized"),
        "https://provider2.example.com": (200, {"choices": [{"message": {"content": "ok"}}]}),
    })
    manager = make_manager(
        two_providers, session, retry_config, fake_sleep, failure_threshold=2, clock=fake_clock
    )

    await manager.create_completion(HELLO)
    assert manager.tracker.get("provider1").available is False

    session.posts.clear()
    await manager.create_completion(HELLO)
    assert session.urls("https://provider1.example.com") == []

    fake_clock.advance(601)
    session.posts.clear()
    await manager.create_completion(HELLO)
    assert len(session.urls("https://provider1.example.com")) == 2

"""HTTP transport for provider requests.

Turns a provider-neutral request into one POST against a provider endpoint
and turns the reply back into a ``CompletionResult``. Non-2xx replies are
raised as classified ``ProviderError`` subclasses so the retry engine can
tell retryable failures from terminal ones.
"""

import asyncio
import json
import logging
from typing import Dict, Optional

import aiohttp

from .exceptions import MalformedResponseError, TransportError, error_for_status
from .models import CompletionRequest, CompletionResult
from .providers.base import AuthMethod, ProviderDescriptor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


class HTTPTransport:
    """aiohttp-backed transport shared by all providers of a manager."""

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the transport.

        Args:
            timeout_seconds: Total timeout per HTTP request
            session: Existing session to reuse; it is not closed by ``close``
        """
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session with connection pooling."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Clean up resources."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    @staticmethod
    def build_headers(provider: ProviderDescriptor, api_key: Optional[str]) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **provider.extra_headers,
        }
        if api_key and provider.auth_method == AuthMethod.HEADER:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    @staticmethod
    def build_params(provider: ProviderDescriptor, api_key: Optional[str]) -> Dict[str, str]:
        if api_key and provider.auth_method == AuthMethod.QUERY:
            return {"key": api_key}
        return {}

    async def send(
        self,
        provider: ProviderDescriptor,
        model: str,
        request: CompletionRequest,
        api_key: Optional[str] = None,
    ) -> CompletionResult:
        """Send one completion request to one provider/model.

        Args:
            provider: Target provider descriptor
            model: Model id to request
            request: Provider-neutral request
            api_key: Credential for the provider, if any

        Returns:
            CompletionResult with ``model`` and ``provider`` taken from the call

        Raises:
            ProviderError: Classified HTTP failure
            TransportError: Network failure or timeout
            MalformedResponseError: Body is not valid JSON of the expected shape
        """
        url = provider.build_url(model)
        payload = provider.format_request(request, model)
        headers = self.build_headers(provider, api_key)
        params = self.build_params(provider, api_key)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)

        logger.debug(f"POST {url} ({provider.id}/{model})")

        try:
            session = await self._get_session()
            async with session.post(
                url,
                headers=headers,
                params=params,
                json=payload,
                timeout=timeout,
            ) as response:
                body = await response.text()
                status = response.status
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"{provider.id} request timed out after {self.timeout_seconds}s",
                provider=provider.id,
                model=model,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                f"{provider.id} request failed: {e}",
                provider=provider.id,
                model=model,
            ) from e

        if not 200 <= status < 300:
            raise error_for_status(status, provider.id, model=model, body=body)

        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedResponseError(
                f"{provider.id} returned invalid JSON",
                status=status,
                provider=provider.id,
                model=model,
            ) from e

        result = provider.parse_response(data)
        # Not every provider echoes the model id
        return result.model_copy(update={"model": model, "provider": provider.id})

"""OpenAI-compatible chat-completions provider shape.

Covers every gateway that speaks the ``/chat/completions`` convention
(Pollinations, OpenRouter): messages are passed through unchanged and the
reply is read from ``choices[0].message.content``.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from ..exceptions import MalformedResponseError
from ..models import CompletionRequest, CompletionResult, TokenUsage
from .base import AuthMethod, ProviderDescriptor

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(ProviderDescriptor):
    """Provider speaking the OpenAI chat-completions wire format."""

    def __init__(
        self,
        provider_id: str,
        name: str,
        base_url: str,
        models: Sequence[str],
        endpoint: str = "/chat/completions",
        requires_auth: bool = True,
        api_key_env: Optional[str] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
        default_max_tokens: Optional[int] = None,
        extra_body: Optional[Mapping[str, Any]] = None,
        supports_json_mode: bool = True,
    ):
        super().__init__(
            provider_id=provider_id,
            name=name,
            base_url=base_url,
            endpoint=endpoint,
            models=models,
            requires_auth=requires_auth,
            auth_method=AuthMethod.HEADER,
            api_key_env=api_key_env,
            extra_headers=extra_headers,
            default_max_tokens=default_max_tokens,
        )
        self.extra_body: Dict[str, Any] = dict(extra_body or {})
        self.supports_json_mode = supports_json_mode

    def format_request(self, request: CompletionRequest, model: str) -> Dict[str, Any]:
        options = request.options
        payload: Dict[str, Any] = {
            "model": model or self.default_model,
            "messages": [
                {"role": m.role, "content": m.content} for m in request.messages
            ],
            "temperature": options.temperature,
        }

        max_tokens = self.max_tokens_for(request)
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        if options.json_mode and self.supports_json_mode:
            payload["response_format"] = {"type": "json_object"}

        for key, value in self.extra_body.items():
            payload.setdefault(key, value)

        return payload

    def parse_response(self, data: Any) -> CompletionResult:
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"{self.id} returned a non-object body", provider=self.id
            )

        choices = data.get("choices")
        if not isinstance(choices, list):
            raise MalformedResponseError(
                f"{self.id} response has no 'choices' list", provider=self.id
            )

        content = ""
        if choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            if isinstance(message, dict):
                content = message.get("content") or ""

        if not isinstance(content, str):
            raise MalformedResponseError(
                f"{self.id} message content is not a string", provider=self.id
            )

        return CompletionResult(
            content=content,
            model=data.get("model") or "unknown",
            provider=self.id,
            usage=TokenUsage.from_openai(data.get("usage")),
        )

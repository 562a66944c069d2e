"""Google Gemini generate-content provider shape."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import MalformedResponseError
from ..models import CompletionRequest, CompletionResult, TokenUsage
from .base import AuthMethod, ProviderDescriptor

logger = logging.getLogger(__name__)

# Gemini has no assistant role; prior model turns are tagged "model".
ROLE_MAP = {
    "user": "user",
    "assistant": "model",
}


class GeminiProvider(ProviderDescriptor):
    """Provider speaking Google's ``models/{model}:generateContent`` format.

    The credential travels as the ``key`` query parameter. System messages
    become ``systemInstruction`` instead of conversation turns.
    """

    def __init__(
        self,
        provider_id: str = "gemini",
        name: str = "Google Gemini",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        models: Sequence[str] = ("gemini-2.0-flash",),
        endpoint: str = "/models/{model}:generateContent",
        api_key_env: Optional[str] = None,
        default_max_tokens: Optional[int] = 4096,
    ):
        super().__init__(
            provider_id=provider_id,
            name=name,
            base_url=base_url,
            endpoint=endpoint,
            models=models,
            requires_auth=True,
            auth_method=AuthMethod.QUERY,
            api_key_env=api_key_env,
            default_max_tokens=default_max_tokens,
        )

    def format_request(self, request: CompletionRequest, model: str) -> Dict[str, Any]:
        options = request.options

        contents: List[Dict[str, Any]] = [
            {
                "role": ROLE_MAP.get(m.role, "user"),
                "parts": [{"text": m.content}],
            }
            for m in request.messages
            if m.role != "system"
        ]

        generation_config: Dict[str, Any] = {"temperature": options.temperature}
        max_tokens = self.max_tokens_for(request)
        if max_tokens is not None:
            generation_config["maxOutputTokens"] = max_tokens
        if options.json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }

        system_message = request.system_message
        if system_message is not None:
            payload["systemInstruction"] = {"parts": [{"text": system_message.content}]}

        return payload

    def parse_response(self, data: Any) -> CompletionResult:
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"{self.id} returned a non-object body", provider=self.id
            )

        candidates = data.get("candidates")
        if not isinstance(candidates, list):
            raise MalformedResponseError(
                f"{self.id} response has no 'candidates' list", provider=self.id
            )

        content = ""
        if candidates and isinstance(candidates[0], dict):
            block = candidates[0].get("content")
            parts = block.get("parts") if isinstance(block, dict) else None
            if parts is not None and not isinstance(parts, list):
                raise MalformedResponseError(
                    f"{self.id} response 'parts' is not a list", provider=self.id
                )
            if parts and isinstance(parts[0], dict):
                content = parts[0].get("text") or ""

        if not isinstance(content, str):
            raise MalformedResponseError(
                f"{self.id} response text is not a string", provider=self.id
            )

        metadata = data.get("usageMetadata")
        if not isinstance(metadata, dict):
            metadata = {}
        usage = TokenUsage(
            prompt_tokens=metadata.get("promptTokenCount") or 0,
            completion_tokens=metadata.get("candidatesTokenCount") or 0,
            total_tokens=metadata.get("totalTokenCount") or 0,
        )

        return CompletionResult(
            content=content,
            model=data.get("modelVersion") or self.id,
            provider=self.id,
            usage=usage,
        )

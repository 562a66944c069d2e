"""Request and response models shared by providers, transport and manager.

These are the provider-neutral shapes: callers build a ``CompletionRequest``
(messages plus ``CompletionOptions``), every provider adapter turns it into its
own wire payload, and every response is normalized back into a
``CompletionResult``.
"""

from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MessageRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """A single role-tagged chat message."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


class CompletionOptions(BaseModel):
    """Generation options accepted by ``create_completion``.

    ``json_mode`` is also accepted under its short wire name ``json``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    model: Optional[str] = Field(default=None, description="Explicit model override")
    temperature: float = Field(default=0.5, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    json_mode: bool = Field(default=False, alias="json")


class CompletionRequest(BaseModel):
    """Provider-neutral completion request."""

    model_config = ConfigDict(frozen=True)

    messages: List[ChatMessage]
    options: CompletionOptions = Field(default_factory=CompletionOptions)

    @field_validator("messages")
    @classmethod
    def validate_messages(cls, v: List[ChatMessage]) -> List[ChatMessage]:
        if not v:
            raise ValueError("At least one message is required")
        return v

    @property
    def system_message(self) -> Optional[ChatMessage]:
        """First system message, if any."""
        for message in self.messages:
            if message.role == "system":
                return message
        return None

    @classmethod
    def build(
        cls,
        messages: Sequence[Union[ChatMessage, Dict[str, Any]]],
        options: Optional[Union[CompletionOptions, Dict[str, Any]]] = None,
        **overrides: Any,
    ) -> "CompletionRequest":
        """Build a request from loose caller input (dicts or models)."""
        if isinstance(options, CompletionOptions):
            option_data = options.model_dump(by_alias=False)
        else:
            option_data = dict(options or {})
        if "json" in option_data:
            option_data["json_mode"] = option_data.pop("json")
        # None means "use the default"
        option_data = {k: v for k, v in option_data.items() if v is not None}
        option_data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(
            messages=[
                m if isinstance(m, ChatMessage) else ChatMessage(**m)
                for m in messages
            ],
            options=CompletionOptions(**option_data),
        )


class TokenUsage(BaseModel):
    """Token accounting, zero-filled when the provider reports nothing."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_openai(cls, usage: Optional[Dict[str, Any]]) -> "TokenUsage":
        usage = usage if isinstance(usage, dict) else {}
        return cls(
            prompt_tokens=usage.get("prompt_tokens") or 0,
            completion_tokens=usage.get("completion_tokens") or 0,
            total_tokens=usage.get("total_tokens") or 0,
        )


class CompletionResult(BaseModel):
    """Normalized completion returned to callers."""

    content: str = ""
    model: str = "unknown"
    provider: str = "unknown"
    usage: TokenUsage = Field(default_factory=TokenUsage)

    def __str__(self) -> str:
        return (
            f"CompletionResult(provider={self.provider}, model={self.model}, "
            f"length={len(self.content)})"
        )

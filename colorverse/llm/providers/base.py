"""Base provider descriptor interface for ColorVerse."""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..models import CompletionRequest, CompletionResult

logger = logging.getLogger(__name__)

MODEL_PLACEHOLDER = "{model}"


class AuthMethod(str, Enum):
    """How a provider expects its credential."""
    HEADER = "header"  # Authorization: Bearer <key>
    QUERY = "query"    # ?key=<key>


class ProviderDescriptor(ABC):
    """Static description of one text-completion provider.

    Descriptors hold no runtime state. ``format_request`` and
    ``parse_response`` are pure so each wire shape can be tested without
    network access.
    """

    def __init__(
        self,
        provider_id: str,
        name: str,
        base_url: str,
        endpoint: str,
        models: Sequence[str],
        requires_auth: bool = True,
        auth_method: AuthMethod = AuthMethod.HEADER,
        api_key_env: Optional[str] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
        default_max_tokens: Optional[int] = None,
    ):
        if not models:
            raise ValueError(f"Provider '{provider_id}' needs at least one model")
        self.id = provider_id
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.endpoint = endpoint
        self.models: Tuple[str, ...] = tuple(models)
        self.requires_auth = requires_auth
        self.auth_method = AuthMethod(auth_method)
        self.api_key_env = api_key_env
        self.extra_headers: Dict[str, str] = dict(extra_headers or {})
        self.default_max_tokens = default_max_tokens

    @property
    def default_model(self) -> str:
        return self.models[0]

    def build_url(self, model: str) -> str:
        """Endpoint URL with the model placeholder substituted."""
        return f"{self.base_url}{self.endpoint}".replace(MODEL_PLACEHOLDER, model)

    def max_tokens_for(self, request: CompletionRequest) -> Optional[int]:
        return request.options.max_tokens or self.default_max_tokens

    @abstractmethod
    def format_request(self, request: CompletionRequest, model: str) -> Dict[str, Any]:
        """Translate a neutral request into this provider's JSON payload."""
        pass

    @abstractmethod
    def parse_response(self, data: Any) -> CompletionResult:
        """Translate this provider's JSON response into a neutral result.

        Raises:
            MalformedResponseError: If the body does not have the expected shape
        """
        pass

    def get_model_info(self) -> Dict[str, Any]:
        """Describe the provider for status output."""
        return {
            "provider": self.id,
            "name": self.name,
            "base_url": self.base_url,
            "models": list(self.models),
            "requires_auth": self.requires_auth,
            "auth_method": self.auth_method.value,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, models={len(self.models)})"

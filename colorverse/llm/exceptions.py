"""LLM-related exceptions and HTTP status classification."""

from enum import Enum
from typing import Dict, Optional


class ErrorKind(str, Enum):
    """Failure categories used by the retry engine and the orchestrator."""
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    SERVER_ERROR = "server_error"
    TRANSPORT = "transport"
    MALFORMED_RESPONSE = "malformed_response"


UNAUTHORIZED_STATUSES = (401,)
QUOTA_EXCEEDED_STATUSES = (403,)
RATE_LIMITED_STATUSES = (429,)
SERVER_ERROR_STATUSES = (500, 502, 503, 504)


class LLMError(Exception):
    """Base LLM error."""
    pass


class ProviderError(LLMError):
    """Provider error."""

    kind: ErrorKind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.status = status
        self.provider = provider
        self.model = model
        super().__init__(message)


class UnauthorizedError(ProviderError):
    """Credential rejected (401)."""
    kind = ErrorKind.UNAUTHORIZED


class RateLimitError(ProviderError):
    """Rate limit error (429)."""
    kind = ErrorKind.RATE_LIMITED


class QuotaExceededError(ProviderError):
    """Quota exhausted or access forbidden (403)."""
    kind = ErrorKind.QUOTA_EXCEEDED


class ServerError(ProviderError):
    """Upstream server failure or any other non-2xx status."""
    kind = ErrorKind.SERVER_ERROR


class TransportError(ProviderError):
    """Network failure or timeout before a response arrived."""
    kind = ErrorKind.TRANSPORT


class MalformedResponseError(ProviderError):
    """Response body could not be parsed into a completion."""
    kind = ErrorKind.MALFORMED_RESPONSE


class RetriesExhaustedError(ProviderError):
    """Every attempt for one provider/model pair failed."""

    def __init__(
        self,
        provider: str,
        model: str,
        attempts: int,
        last_error: Optional[Exception] = None,
    ):
        self.attempts = attempts
        self.last_error = last_error
        status = getattr(last_error, "status", None)
        super().__init__(
            f"All {attempts} retries failed for {provider}/{model}: {last_error}",
            status=status,
            provider=provider,
            model=model,
        )
        if isinstance(last_error, ProviderError):
            self.kind = last_error.kind
        self.__cause__ = last_error


class AllProvidersFailedError(LLMError):
    """All providers in the chain have failed."""

    def __init__(
        self,
        errors: Optional[Dict[str, Exception]] = None,
        last_error: Optional[Exception] = None,
        message: str = "All AI providers failed",
    ):
        self.errors = errors or {}
        self.last_error = last_error
        self.message = message
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"{message}{detail}")


class JSONExtractionError(LLMError):
    """Completion content did not contain valid JSON."""
    pass


_STATUS_ERRORS = {
    **{status: UnauthorizedError for status in UNAUTHORIZED_STATUSES},
    **{status: QuotaExceededError for status in QUOTA_EXCEEDED_STATUSES},
    **{status: RateLimitError for status in RATE_LIMITED_STATUSES},
}


def classify_status(status: int) -> ErrorKind:
    """Map an HTTP status code onto an error category.

    Statuses outside the known tables are treated like server errors, which
    keeps them retryable.
    """
    return _STATUS_ERRORS.get(status, ServerError).kind


def error_for_status(
    status: int,
    provider: str,
    model: Optional[str] = None,
    body: str = "",
) -> ProviderError:
    """Build the classified exception for a non-2xx response."""
    error_cls = _STATUS_ERRORS.get(status, ServerError)
    message = f"{provider} API Error {status}"
    if body:
        message = f"{message}: {body[:500]}"
    return error_cls(message, status=status, provider=provider, model=model)


def error_kind(error: Optional[BaseException]) -> Optional[ErrorKind]:
    """Return the category of an error, falling back to its status code."""
    if isinstance(error, ProviderError):
        return error.kind
    status = getattr(error, "status", None)
    if isinstance(status, int):
        return classify_status(status)
    return None


def is_retryable(error: Optional[BaseException]) -> bool:
    """Whether another attempt on the same model may succeed."""
    return error_kind(error) not in (
        ErrorKind.UNAUTHORIZED,
        ErrorKind.RATE_LIMITED,
        ErrorKind.QUOTA_EXCEEDED,
    )


def is_provider_level(error: Optional[BaseException]) -> bool:
    """Whether the failure rules out the remaining models of the provider."""
    return error_kind(error) in (ErrorKind.RATE_LIMITED, ErrorKind.QUOTA_EXCEEDED)

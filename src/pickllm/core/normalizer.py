"""
Result normalizer and error classifier.

Turns a forwarding response envelope, or the absence of one, into a uniform
``TargetResult``. Classification happens here and nowhere else.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pickllm.core.models import ErrorKind, TargetResult
from pickllm.providers.base import ForwardResponse

_HTTP_UNAUTHORIZED = 401
_HTTP_NOT_FOUND = 404
_HTTP_RATE_LIMITED = 429
_HTTP_SERVER_ERROR = 500

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_CREDENTIAL: "Invalid API key. Please check your API key and try again.",
    ErrorKind.QUOTA_EXCEEDED: "Insufficient quota. You have exceeded your API usage limits.",
    ErrorKind.TARGET_NOT_ACCESSIBLE: "Model not found or not accessible with your API key.",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please wait a moment before trying again.",
    ErrorKind.UPSTREAM_UNAVAILABLE: "The model provider is temporarily unavailable. Please try again later.",
    ErrorKind.NETWORK_ERROR: "Network error - please check your connection",
    ErrorKind.UNKNOWN_PROVIDER_ERROR: "Unknown error occurred",
}


class SuccessPayload(BaseModel):
    """Body of a successful forwarding response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    response_text: str = Field(alias="responseText")
    prompt_tokens: int = Field(default=0, alias="promptTokens", ge=0)
    completion_tokens: int = Field(default=0, alias="completionTokens", ge=0)
    total_tokens: int | None = Field(default=None, alias="totalTokens", ge=0)


class FailurePayload(BaseModel):
    """Body of a failed forwarding response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    error_message: str | None = Field(default=None, alias="errorMessage")
    error_type: str | None = Field(default=None, alias="errorType")
    error_code: str | None = Field(default=None, alias="errorCode")


def classify_failure(
    status_code: int,
    error_type: str | None = None,
    error_code: str | None = None,
) -> ErrorKind:
    """Map a provider-reported status, type and code to an ``ErrorKind``."""
    markers = {error_type, error_code} - {None}

    if error_type == "invalid_api_key" or status_code == _HTTP_UNAUTHORIZED:
        return ErrorKind.INVALID_CREDENTIAL
    # Quota exhaustion outranks the 429 status it arrives with
    if "insufficient_quota" in markers:
        return ErrorKind.QUOTA_EXCEEDED
    if "model_not_found" in markers or status_code == _HTTP_NOT_FOUND:
        return ErrorKind.TARGET_NOT_ACCESSIBLE
    if "rate_limit_exceeded" in markers or status_code == _HTTP_RATE_LIMITED:
        return ErrorKind.RATE_LIMITED
    if status_code >= _HTTP_SERVER_ERROR:
        return ErrorKind.UPSTREAM_UNAVAILABLE
    return ErrorKind.UNKNOWN_PROVIDER_ERROR


def _failed(
    target_id: str,
    kind: ErrorKind,
    elapsed_seconds: float,
    message: str | None = None,
) -> TargetResult:
    return TargetResult(
        target_id=target_id,
        elapsed_seconds=elapsed_seconds,
        error_kind=kind,
        error_message=message or DEFAULT_MESSAGES[kind],
    )


def normalize_response(
    target_id: str,
    response: ForwardResponse,
    elapsed_seconds: float,
) -> TargetResult:
    """
    Normalize a forwarding response envelope.

    Args:
        target_id: Target the call was issued for
        response: Envelope returned by the forwarding endpoint
        elapsed_seconds: Settle time minus this target's start time

    Returns:
        A result without costs; pricing is applied by the cost aggregator
    """
    if response.ok:
        try:
            body = SuccessPayload.model_validate(response.payload)
        except ValidationError:
            return _failed(
                target_id,
                ErrorKind.UNKNOWN_PROVIDER_ERROR,
                elapsed_seconds,
                "Malformed response from forwarding endpoint",
            )
        total_tokens = body.total_tokens
        if total_tokens is None:
            total_tokens = body.prompt_tokens + body.completion_tokens
        return TargetResult(
            target_id=target_id,
            response_text=body.response_text,
            prompt_tokens=body.prompt_tokens,
            completion_tokens=body.completion_tokens,
            total_tokens=total_tokens,
            elapsed_seconds=elapsed_seconds,
        )

    try:
        failure = FailurePayload.model_validate(response.payload)
    except ValidationError:
        failure = FailurePayload()
    kind = classify_failure(response.status_code, failure.error_type, failure.error_code)
    return _failed(target_id, kind, elapsed_seconds, failure.error_message)


def normalize_transport_failure(
    target_id: str,
    error: BaseException,
    elapsed_seconds: float,
) -> TargetResult:
    """A call that never produced a response is always a network error."""
    return _failed(target_id, ErrorKind.NETWORK_ERROR, elapsed_seconds)

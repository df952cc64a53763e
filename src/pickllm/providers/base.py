"""
Base interface for the forwarding endpoint.

The forwarding endpoint is a stateless service that turns a target, prompt and
credential into a single provider call. Implementations must either return the
endpoint's response envelope (whatever its status) or raise when no response
was received at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pickllm.core.errors import PickLLMError
from pickllm.core.models import RunOverrides


class TransportError(PickLLMError):
    """Raised when the forwarding call produced no response."""

    def __init__(self, message: str, target_id: str | None = None):
        super().__init__(message)
        self.target_id = target_id

    @classmethod
    def timeout(cls, target_id: str | None = None) -> "TransportError":
        return cls("Forwarding request timed out", target_id=target_id)

    @classmethod
    def network(cls, detail: str, target_id: str | None = None) -> "TransportError":
        return cls(f"Forwarding request failed: {detail}", target_id=target_id)


class ForwardRequest(BaseModel):
    """Body sent to the forwarding endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str
    target_id: str = Field(alias="targetId")
    credential: str
    temperature: float | None = None
    top_p: float | None = Field(default=None, alias="topP")
    max_tokens: int | None = Field(default=None, alias="maxTokens")

    @classmethod
    def build(
        cls,
        prompt: str,
        target_id: str,
        credential: str,
        overrides: RunOverrides,
    ) -> "ForwardRequest":
        return cls(
            prompt=prompt,
            target_id=target_id,
            credential=credential,
            temperature=overrides.temperature,
            top_p=overrides.top_p,
            max_tokens=overrides.max_tokens,
        )

    def to_wire(self) -> dict[str, Any]:
        """JSON payload with absent overrides omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ForwardResponse(BaseModel):
    """Envelope returned by the forwarding endpoint."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ForwardingClient(ABC):
    """Abstract client for the forwarding endpoint."""

    @abstractmethod
    async def forward(self, request: ForwardRequest) -> ForwardResponse:
        """
        Issue exactly one forwarding call.

        Args:
            request: Prompt, target, credential and overrides

        Returns:
            The response envelope, successful or not

        Raises:
            TransportError: If no response was received
        """
        ...

    async def aclose(self) -> None:
        """Release any resources held by the client."""

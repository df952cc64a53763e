"""Fakes and builders shared by the PickLLM tests."""

from __future__ import annotations

import asyncio

from pickllm.providers.base import ForwardingClient, ForwardRequest, ForwardResponse


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedClient(ForwardingClient):
    """Forwarding client returning canned envelopes or raising canned errors.

    A target listed in ``gates`` blocks until its event is set, which lets a
    test choose the order in which targets settle.
    """

    def __init__(
        self,
        responses: dict[str, ForwardResponse | BaseException],
        gates: dict[str, asyncio.Event] | None = None,
    ):
        self.responses = responses
        self.gates = gates or {}
        self.requests: list[ForwardRequest] = []
        self.closed = False

    async def forward(self, request: ForwardRequest) -> ForwardResponse:
        self.requests.append(request)
        gate = self.gates.get(request.target_id)
        if gate is not None:
            await gate.wait()
        outcome = self.responses[request.target_id]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


def ok(
    text: str = "Hello",
    prompt_tokens: int = 10,
    completion_tokens: int = 5,
    total_tokens: int | None = None,
) -> ForwardResponse:
    """Successful forwarding envelope."""
    return ForwardResponse(
        status_code=200,
        payload={
            "responseText": text,
            "promptTokens": prompt_tokens,
            "completionTokens": completion_tokens,
            "totalTokens": (
                prompt_tokens + completion_tokens if total_tokens is None else total_tokens
            ),
        },
    )


def fail(
    status_code: int,
    message: str | None = None,
    error_type: str | None = None,
    error_code: str | None = None,
) -> ForwardResponse:
    """Failed forwarding envelope."""
    payload: dict[str, str] = {}
    if message is not None:
        payload["errorMessage"] = message
    if error_type is not None:
        payload["errorType"] = error_type
    if error_code is not None:
        payload["errorCode"] = error_code
    return ForwardResponse(status_code=status_code, payload=payload)


async def spin(iterations: int = 10) -> None:
    """Let pending tasks on the event loop make progress."""
    for _ in range(iterations):
        await asyncio.sleep(0)

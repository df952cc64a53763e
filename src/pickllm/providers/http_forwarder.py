"""HTTP implementation of the forwarding client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from pickllm.providers.base import (
    ForwardingClient,
    ForwardRequest,
    ForwardResponse,
    TransportError,
)

logger = structlog.get_logger()


class HTTPForwardingClient(ForwardingClient):
    """
    Forwarding client that POSTs JSON to the forwarding endpoint.

    Non-2xx responses are returned as envelopes, not raised; only a missing
    response (timeout, DNS, connection, TLS) raises ``TransportError``.
    Timeouts are owned by the ``httpx`` client.

    Args:
        endpoint_url: URL of the forwarding endpoint
        timeout_seconds: Transport timeout for each call
        http_client: Optional client to use instead of an owned one
    """

    def __init__(
        self,
        endpoint_url: str,
        timeout_seconds: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.endpoint_url = endpoint_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def forward(self, request: ForwardRequest) -> ForwardResponse:
        try:
            response = await self._client.post(self.endpoint_url, json=request.to_wire())
        except httpx.TimeoutException as exc:
            raise TransportError.timeout(request.target_id) from exc
        except httpx.RequestError as exc:
            raise TransportError.network(str(exc), request.target_id) from exc

        return ForwardResponse(
            status_code=response.status_code,
            payload=self._decode_payload(response),
        )

    @staticmethod
    def _decode_payload(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body; anything else becomes an empty payload."""
        try:
            data = response.json()
        except ValueError:
            logger.warning(
                "Forwarding endpoint returned non-JSON body",
                status_code=response.status_code,
            )
            return {}
        return data if isinstance(data, dict) else {}

"""Adapters for the forwarding endpoint and the pricing table."""

from pickllm.providers.base import (
    ForwardingClient,
    ForwardRequest,
    ForwardResponse,
    TransportError,
)
from pickllm.providers.http_forwarder import HTTPForwardingClient
from pickllm.providers.pricing import (
    HTTPPricingSource,
    PricingSource,
    StaticPricingSource,
    parse_pricing_table,
)

__all__ = [
    "ForwardingClient",
    "ForwardRequest",
    "ForwardResponse",
    "TransportError",
    "HTTPForwardingClient",
    "HTTPPricingSource",
    "PricingSource",
    "StaticPricingSource",
    "parse_pricing_table",
]

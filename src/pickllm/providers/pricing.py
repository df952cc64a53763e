"""
Pricing table sources.

The pricing table maps a target id to per-token input and output costs. It is
a slow-changing external document, fetched at most once per refresh interval.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from pickllm.core.errors import PricingError
from pickllm.core.models import PricingEntry, PricingTable

logger = structlog.get_logger()

LITELLM_PRICES_URL = (
    "https://raw.githubusercontent.com/BerriAI/litellm/refs/heads/main/"
    "model_prices_and_context_window.json"
)


class _RawPricing(BaseModel):
    """One pricing document entry, in either camelCase or LiteLLM spelling."""

    model_config = ConfigDict(extra="ignore")

    input_cost_per_token: float = Field(
        validation_alias=AliasChoices("inputCostPerToken", "input_cost_per_token"),
        ge=0.0,
    )
    output_cost_per_token: float = Field(
        validation_alias=AliasChoices("outputCostPerToken", "output_cost_per_token"),
        ge=0.0,
    )


def parse_pricing_table(data: Mapping[str, Any]) -> dict[str, PricingEntry]:
    """
    Build a pricing table from a raw pricing document.

    Entries that carry no usable per-token costs are skipped; a missing entry
    means zero cost downstream.
    """
    table: dict[str, PricingEntry] = {}
    for target_id, raw in data.items():
        if not isinstance(raw, Mapping):
            continue
        try:
            parsed = _RawPricing.model_validate(raw)
        except ValidationError:
            continue
        table[target_id] = PricingEntry(
            input_cost_per_token=parsed.input_cost_per_token,
            output_cost_per_token=parsed.output_cost_per_token,
        )
    return table


class PricingSource(ABC):
    """Provides the pricing table used for a run."""

    @abstractmethod
    async def get_pricing(self) -> PricingTable:
        ...

    async def aclose(self) -> None:
        """Release any resources held by the source."""


class StaticPricingSource(PricingSource):
    """Fixed, in-memory pricing table."""

    def __init__(self, table: Mapping[str, PricingEntry] | None = None):
        self._table = dict(table or {})

    async def get_pricing(self) -> PricingTable:
        return dict(self._table)


class HTTPPricingSource(PricingSource):
    """
    Fetches the pricing document over HTTP and caches it in memory.

    A failed refresh keeps serving the last good table until the next
    interval. Only when nothing was ever fetched does ``get_pricing`` raise
    ``PricingError``.
    """

    def __init__(
        self,
        url: str = LITELLM_PRICES_URL,
        refresh_interval_seconds: float = 86400.0,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.refresh_interval_seconds = refresh_interval_seconds
        self._clock = clock
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._table: dict[str, PricingEntry] | None = None
        self._fetched_at: float | None = None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return self._clock() - self._fetched_at >= self.refresh_interval_seconds

    async def get_pricing(self) -> PricingTable:
        if not self.is_stale and self._table is not None:
            return self._table

        try:
            self._table = await self._fetch()
            self._fetched_at = self._clock()
        except PricingError as e:
            if self._table is None:
                raise
            # Retry after a full interval, not on every run
            self._fetched_at = self._clock()
            logger.warning("Pricing refresh failed, keeping cached table", error=str(e))
        return self._table

    async def _fetch(self) -> dict[str, PricingEntry]:
        try:
            response = await self._client.get(self.url)
        except httpx.RequestError as exc:
            raise PricingError(f"Pricing fetch failed: {exc}") from exc

        if response.status_code >= 400:
            raise PricingError(
                f"Pricing fetch returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise PricingError("Pricing document is not valid JSON") from exc
        if not isinstance(data, dict):
            raise PricingError("Pricing document must be a JSON object")

        table = parse_pricing_table(data)
        logger.info("Pricing table fetched", entries=len(table))
        return table

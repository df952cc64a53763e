"""
Comparison Orchestrator - the object the presentation layer talks to.

Wires together:
- The target registry and its enabled flags
- Per-target lifecycle state
- Concurrent dispatch to the forwarding endpoint
- Pricing lookup and run cost summaries
- Sorted, read-only views for display
"""

from __future__ import annotations

import time
from typing import Callable, Iterable

import structlog

from pickllm.core.config import get_settings
from pickllm.core.dispatch import DispatchCoordinator
from pickllm.core.errors import PricingError
from pickllm.core.models import (
    PricingTable,
    RunOverrides,
    RunSummary,
    SortKey,
    TargetView,
)
from pickllm.core.registry import TargetRegistry
from pickllm.core.sorting import sort_targets
from pickllm.core.state import TargetStateStore
from pickllm.providers.base import ForwardingClient
from pickllm.providers.http_forwarder import HTTPForwardingClient
from pickllm.providers.pricing import HTTPPricingSource, PricingSource, StaticPricingSource

logger = structlog.get_logger()


class Orchestrator:
    """
    Multi-target prompt comparison.

    Provides a unified interface for:
    - Running one prompt against every enabled target
    - Enabling, disabling and replacing targets
    - Reading per-target state and the latest run summary
    - Ordering targets for display

    Example:
        orch = Orchestrator(credential="sk-...", targets=["gpt-4o", "gpt-4-turbo"])
        summary = await orch.run_comparison("Explain recursion")
        for target_id in orch.sorted_targets(SortKey.COST):
            print(orch.states()[target_id])
    """

    def __init__(
        self,
        client: ForwardingClient | None = None,
        pricing: PricingSource | None = None,
        targets: TargetRegistry | Iterable[str] | None = None,
        credential: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        auto_configure: bool = True,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Forwarding endpoint client (HTTP client from settings if None)
            pricing: Pricing source (HTTP source from settings if None)
            targets: Registry or ordered ids (default targets if None)
            credential: Provider credential (or OPENAI_API_KEY from env)
            clock: Monotonic clock for timestamps
            auto_configure: Fill missing collaborators from settings if True
        """
        self.settings = get_settings()

        if auto_configure:
            if client is None:
                client = HTTPForwardingClient(
                    self.settings.forwarding.endpoint_url,
                    timeout_seconds=self.settings.forwarding.timeout_seconds,
                )
            if pricing is None:
                pricing = HTTPPricingSource(
                    url=self.settings.pricing.url,
                    refresh_interval_seconds=self.settings.pricing.refresh_interval_seconds,
                    timeout_seconds=self.settings.pricing.timeout_seconds,
                )
            if credential is None and self.settings.openai_api_key is not None:
                credential = self.settings.openai_api_key.get_secret_value()
            if targets is None:
                targets = self.settings.comparison.default_targets

        if client is None:
            raise ValueError("A forwarding client is required when auto_configure is False")

        if isinstance(targets, TargetRegistry):
            self.registry = targets
        else:
            self.registry = TargetRegistry.from_ids(targets or ())

        self.client = client
        self.pricing = pricing or StaticPricingSource()
        self.credential = credential
        self.clock = clock
        self.store = TargetStateStore(self.registry.ids)
        self.coordinator = DispatchCoordinator(client, self.store, clock=clock)
        self._summary: RunSummary | None = None
        self._pricing_table: PricingTable = {}
        self._runs_in_flight = 0
        self._latest_run = 0

        logger.info(
            "Orchestrator initialized",
            targets=self.registry.ids,
            has_credential=bool(credential),
        )

    @property
    def summary(self) -> RunSummary | None:
        """Summary of the latest fully settled run; None while a run is pending."""
        return self._summary

    @property
    def is_running(self) -> bool:
        return self._runs_in_flight > 0

    @property
    def pricing_table(self) -> PricingTable:
        """Pricing table used by the most recent run."""
        return self._pricing_table

    def set_credential(self, credential: str | None) -> None:
        self.credential = credential.strip() if credential else None

    async def run_comparison(
        self,
        prompt: str,
        overrides: RunOverrides | None = None,
    ) -> RunSummary | None:
        """
        Send ``prompt`` to every enabled target and wait for all to settle.

        Returns None without touching state when the prompt is blank, the
        credential is missing or no target is enabled.
        """
        enabled = self.registry.enabled_ids()
        if not prompt.strip() or not self.credential or not enabled:
            return await self.coordinator.run(prompt, enabled, overrides, self.credential)

        pricing = await self._load_pricing()
        self._latest_run += 1
        run_number = self._latest_run
        self._summary = None
        self._runs_in_flight += 1
        try:
            summary = await self.coordinator.run(
                prompt,
                enabled,
                overrides,
                credential=self.credential,
                pricing=pricing,
            )
        finally:
            self._runs_in_flight -= 1

        # Only the most recently started run publishes its summary
        if run_number == self._latest_run:
            self._summary = summary
        else:
            logger.debug(
                "Superseded run finished, summary not published",
                run_id=summary.run_id if summary else None,
            )
        return summary

    def toggle_target(self, target_id: str, enabled: bool) -> None:
        """Include or exclude a target from the next run; state is untouched."""
        self.registry.toggle(target_id, enabled)
        logger.debug("Target toggled", target_id=target_id, enabled=enabled)

    def replace_target_list(self, ids: Iterable[str]) -> None:
        """Replace the registry; removed targets lose their state."""
        removed = self.registry.replace(ids)
        self.store.sync(self.registry.ids)
        logger.info("Target list replaced", targets=self.registry.ids, removed=removed)

    def states(self) -> dict[str, TargetView]:
        """Read-only view of every registered target, in registry order."""
        views: dict[str, TargetView] = {}
        for target in self.registry:
            state = self.store.get(target.id)
            views[target.id] = TargetView(
                target_id=target.id,
                enabled=target.enabled,
                lifecycle=state.lifecycle,
                result=state.result,
                start_timestamp=state.start_timestamp,
            )
        return views

    def elapsed_seconds(self, target_id: str) -> float | None:
        """Live elapsed time while Loading, frozen once settled."""
        return self.store.elapsed_seconds(target_id, self.clock())

    def sorted_targets(self, key: SortKey = SortKey.INSERTION) -> list[str]:
        """Registered target ids in display order."""
        return sort_targets(self.registry.ids, self.store.snapshot(), key)

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.pricing.aclose()

    async def _load_pricing(self) -> PricingTable:
        try:
            self._pricing_table = await self.pricing.get_pricing()
        except PricingError as e:
            # Missing pricing means zero cost, never a failed run
            logger.warning("Pricing unavailable, costs will be zero", error=str(e))
            self._pricing_table = {}
        return self._pricing_table

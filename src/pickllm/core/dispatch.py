"""
Dispatch coordinator.

Fans one prompt out to every enabled target as independent asyncio tasks and
joins them once all have settled. There is no retry, no cancellation and no
coordinator-level timeout; an unresponsive call keeps its target Loading until
the transport resolves or errors.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Callable, Sequence

import structlog

from pickllm.core.costs import price_result, summarize_run
from pickllm.core.models import (
    PricingTable,
    RunOverrides,
    RunSummary,
    TargetResult,
)
from pickllm.core.normalizer import normalize_response, normalize_transport_failure
from pickllm.core.state import TargetStateStore
from pickllm.providers.base import ForwardingClient, ForwardRequest

logger = structlog.get_logger()


class DispatchCoordinator:
    """
    Issues one forwarding call per target and records each outcome.

    Every completion handler writes only its own target's slot in ``store``.

    Args:
        client: Forwarding endpoint client
        store: Per-target state store shared with the presentation layer
        clock: Monotonic clock used for start timestamps and elapsed time
    """

    def __init__(
        self,
        client: ForwardingClient,
        store: TargetStateStore,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.store = store
        self.clock = clock

    async def run(
        self,
        prompt: str,
        enabled_targets: Sequence[str],
        overrides: RunOverrides | None = None,
        credential: str | None = None,
        pricing: PricingTable | None = None,
    ) -> RunSummary | None:
        """
        Run one comparison.

        Args:
            prompt: Prompt sent unchanged to every target
            enabled_targets: Targets to dispatch, in registry order
            overrides: Optional sampling overrides
            credential: Provider credential forwarded with each call
            pricing: Pricing table, read-only for the whole run

        Returns:
            The run summary once every call has settled, or None when the
            preconditions are not met and nothing was dispatched
        """
        if not prompt.strip() or not credential or not enabled_targets:
            logger.debug(
                "Skipping run, preconditions not met",
                has_prompt=bool(prompt.strip()),
                has_credential=bool(credential),
                targets=len(enabled_targets),
            )
            return None

        overrides = overrides or RunOverrides()
        pricing = pricing or {}
        target_ids = list(dict.fromkeys(enabled_targets))
        run_id = f"run-{uuid.uuid4().hex[:16]}"
        log = logger.bind(run_id=run_id)

        starts: dict[str, float] = {}
        for target_id in target_ids:
            starts[target_id] = self.clock()
            self.store.begin(target_id, starts[target_id])

        log.info("Run started", targets=target_ids)

        tasks = [
            asyncio.ensure_future(
                self._dispatch(
                    ForwardRequest.build(prompt, target_id, credential, overrides),
                    starts[target_id],
                    pricing,
                )
            )
            for target_id in target_ids
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for target_id, outcome in zip(target_ids, outcomes):
            if isinstance(outcome, BaseException):
                log.error(
                    "Target handler raised",
                    target_id=target_id,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )

        summary = summarize_run(target_ids, self.store.snapshot(), run_id=run_id)
        log.info(
            "Run completed",
            succeeded=summary.succeeded,
            failed=summary.failed,
            total_cost=summary.total_cost,
        )
        return summary

    async def _dispatch(
        self,
        request: ForwardRequest,
        started_at: float,
        pricing: PricingTable,
    ) -> TargetResult:
        """Issue one call and settle its target, whatever the outcome."""
        target_id = request.target_id
        try:
            response = await self.client.forward(request)
        except Exception as e:
            result = normalize_transport_failure(
                target_id, e, self._elapsed(started_at)
            )
            logger.warning(
                "Target transport failed",
                target_id=target_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        else:
            result = normalize_response(target_id, response, self._elapsed(started_at))

        result = price_result(result, pricing)
        self.store.settle(target_id, result)
        logger.info(
            "Target settled",
            target_id=target_id,
            success=result.success,
            error_kind=result.error_kind.value if result.error_kind else None,
            elapsed_seconds=round(result.elapsed_seconds, 3),
            total_tokens=result.total_tokens,
        )
        return result

    def _elapsed(self, started_at: float) -> float:
        return max(0.0, self.clock() - started_at)

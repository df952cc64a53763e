"""
Cost aggregation.

Per-target cost is computed when a target settles; the run summary is computed
once, after the whole fan-out has settled.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Mapping

from pickllm.core.models import (
    LifecycleState,
    PricingEntry,
    PricingTable,
    RunSummary,
    TargetResult,
    TargetState,
)

_NO_PRICING = PricingEntry()


def price_result(result: TargetResult, pricing: PricingTable) -> TargetResult:
    """
    Return ``result`` with its cost fields filled in.

    Failed results always cost exactly zero. A target without a pricing entry
    costs zero as well; that is not an error.
    """
    if not result.success:
        return result.model_copy(
            update={"input_cost": 0.0, "output_cost": 0.0, "total_cost": 0.0}
        )

    entry = pricing.get(result.target_id, _NO_PRICING)
    input_cost = result.prompt_tokens * entry.input_cost_per_token
    output_cost = result.completion_tokens * entry.output_cost_per_token
    return result.model_copy(
        update={
            "input_cost": input_cost,
            "output_cost": output_cost,
            "total_cost": input_cost + output_cost,
        }
    )


def summarize_run(
    target_ids: Iterable[str],
    states: Mapping[str, TargetState],
    run_id: str | None = None,
) -> RunSummary:
    """
    Sum costs over the run's targets that are currently Succeeded.

    Failed targets are counted but add nothing. Targets missing from
    ``states`` (removed mid-run) add nothing either.
    """
    ids = tuple(target_ids)
    total_input = 0.0
    total_output = 0.0
    total = 0.0
    succeeded = 0
    failed = 0

    for target_id in ids:
        state = states.get(target_id)
        if state is None:
            continue
        if state.lifecycle == LifecycleState.FAILED:
            failed += 1
            continue
        if state.lifecycle != LifecycleState.SUCCEEDED or state.result is None:
            continue
        succeeded += 1
        total_input += state.result.input_cost
        total_output += state.result.output_cost
        total += state.result.total_cost

    return RunSummary(
        run_id=run_id or f"run-{uuid.uuid4().hex[:16]}",
        target_ids=ids,
        total_cost=total,
        total_input_cost=total_input,
        total_output_cost=total_output,
        succeeded=succeeded,
        failed=failed,
    )

#!/usr/bin/env python3
"""
Basic usage examples for PickLLM.

Runs a prompt against several targets at once through a forwarding
endpoint and prints the results side by side. Set OPENAI_API_KEY and,
if the endpoint is not on localhost:3000, PICKLLM_FORWARDING_ENDPOINT_URL.
"""

import asyncio

from pickllm import Orchestrator, RunOverrides, SortKey
from pickllm.core.models import LifecycleState


async def compare_targets():
    """Compare every default target."""
    print("\n=== Side-by-side Comparison ===\n")

    orch = Orchestrator()
    try:
        summary = await orch.run_comparison(
            "Write a one-paragraph explanation of blockchain technology.",
            RunOverrides(temperature=0.7, max_tokens=300),
        )
    finally:
        await orch.aclose()

    if summary is None:
        print("Nothing ran: check the API key and the enabled targets.")
        return

    views = orch.states()
    for target_id in orch.sorted_targets(SortKey.ELAPSED):
        result = views[target_id].result
        if result is None:
            continue
        if result.success:
            print(f"--- {target_id} ---")
            print(f"{result.response_text[:200]}...")
            print(f"Elapsed: {result.elapsed_seconds:.2f}s")
            print(f"Cost: ${result.total_cost:.6f}\n")
        else:
            print(f"--- {target_id} (FAILED: {result.error_kind.value}) ---")
            print(f"Error: {result.error_message}\n")

    print(f"Total cost: ${summary.total_cost:.6f}")
    print(f"Succeeded: {summary.succeeded}, failed: {summary.failed}")


async def toggle_targets():
    """Run only a subset of the registered targets."""
    print("\n=== Subset Comparison ===\n")

    orch = Orchestrator(targets=["gpt-4o", "gpt-3.5-turbo-0125", "gpt-4-turbo"])
    orch.toggle_target("gpt-4-turbo", False)

    try:
        await orch.run_comparison("Name three prime numbers.")
    finally:
        await orch.aclose()

    for target_id, view in orch.states().items():
        if view.lifecycle == LifecycleState.IDLE:
            print(f"{target_id}: skipped")
        else:
            print(f"{target_id}: {view.lifecycle.value} in {orch.elapsed_seconds(target_id):.2f}s")


async def main():
    """Run all examples."""
    print("=" * 60)
    print("PickLLM - Basic Usage Examples")
    print("=" * 60)

    try:
        await compare_targets()
        await toggle_targets()
    except Exception as e:
        print(f"\nError: {e}")
        print("Make sure the forwarding endpoint is running and OPENAI_API_KEY is set.")


if __name__ == "__main__":
    asyncio.run(main())

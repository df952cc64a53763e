"""Presentation ordering over canonical target state."""

from __future__ import annotations

from typing import Mapping, Sequence

from pickllm.core.models import SortKey, TargetResult, TargetState


def _metric(result: TargetResult, key: SortKey) -> float:
    if key == SortKey.ELAPSED:
        return result.elapsed_seconds
    if key == SortKey.COST:
        return result.total_cost
    if key == SortKey.TOKENS:
        return result.total_tokens
    return 0.0


def sort_targets(
    order: Sequence[str],
    states: Mapping[str, TargetState],
    key: SortKey = SortKey.INSERTION,
) -> list[str]:
    """
    Return target ids in display order.

    Targets without a result (Idle or Loading) come after every target that
    has one, under every key. Ties keep insertion order. ``states`` is never
    modified.
    """

    def sort_key(item: tuple[int, str]) -> tuple[bool, float, int]:
        position, target_id = item
        state = states.get(target_id)
        result = state.result if state is not None else None
        if result is None:
            return (True, 0.0, position)
        return (False, _metric(result, key), position)

    return [target_id for _, target_id in sorted(enumerate(order), key=sort_key)]

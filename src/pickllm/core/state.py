"""
Per-target lifecycle state.

Each target owns exactly one slot in the store. Completion handlers only ever
replace their own slot, so concurrent completions on the event loop never
contend for the same key and no lock is needed.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import structlog

from pickllm.core.errors import InvalidTransitionError
from pickllm.core.models import LifecycleState, TargetResult, TargetState

logger = structlog.get_logger()


class TargetStateStore:
    """Mapping from target id to its current, immutable state record."""

    def __init__(self, target_ids: Iterable[str] = ()):
        self._states: dict[str, TargetState] = {
            target_id: TargetState(target_id=target_id) for target_id in target_ids
        }

    def __contains__(self, target_id: object) -> bool:
        return target_id in self._states

    def get(self, target_id: str) -> TargetState:
        """Current state, or a fresh Idle record for an unseen id."""
        return self._states.get(target_id) or TargetState(target_id=target_id)

    def snapshot(self) -> Mapping[str, TargetState]:
        return dict(self._states)

    def sync(self, target_ids: Iterable[str]) -> None:
        """Keep slots for ``target_ids`` only, adding Idle slots for new ids."""
        self._states = {
            target_id: self.get(target_id) for target_id in target_ids
        }

    def begin(self, target_id: str, started_at: float) -> TargetState:
        """Enter Loading from any state, clearing the previous result."""
        state = TargetState(
            target_id=target_id,
            lifecycle=LifecycleState.LOADING,
            result=None,
            start_timestamp=started_at,
        )
        self._states[target_id] = state
        return state

    def settle(self, target_id: str, result: TargetResult) -> TargetState | None:
        """
        Move a dispatched target to Succeeded or Failed.

        A result for an id that has since been removed from the store is
        dropped and ``None`` is returned. A result arriving after the target
        already settled overwrites it; runs are not tracked per slot.
        """
        current = self._states.get(target_id)
        requested = (
            LifecycleState.SUCCEEDED if result.success else LifecycleState.FAILED
        )
        if current is None:
            logger.info("Dropping result for removed target", target_id=target_id)
            return None
        if current.lifecycle == LifecycleState.IDLE:
            raise InvalidTransitionError(target_id, current.lifecycle, requested)
        if current.lifecycle.is_terminal:
            logger.debug(
                "Late result overwrites settled target",
                target_id=target_id,
                previous=current.lifecycle.value,
            )

        state = TargetState(
            target_id=target_id,
            lifecycle=requested,
            result=result,
            start_timestamp=current.start_timestamp,
        )
        self._states[target_id] = state
        return state

    def elapsed_seconds(self, target_id: str, now: float) -> float | None:
        """
        Elapsed time for display.

        Live while Loading (never negative, grows with ``now``) and frozen to
        the result's value once terminal. ``None`` while Idle.
        """
        state = self.get(target_id)
        if state.lifecycle == LifecycleState.LOADING and state.start_timestamp is not None:
            return max(0.0, now - state.start_timestamp)
        if state.result is not None:
            return state.result.elapsed_seconds
        return None

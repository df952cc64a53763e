"""Exceptions raised by the PickLLM library."""

from __future__ import annotations

from pickllm.core.models import LifecycleState


class PickLLMError(Exception):
    """Base exception for all PickLLM errors."""


class RegistryError(PickLLMError):
    """Raised when the target registry is asked to hold invalid ids."""

    def __init__(self, message: str, target_id: str | None = None):
        super().__init__(message)
        self.target_id = target_id

    @classmethod
    def duplicate(cls, target_id: str) -> "RegistryError":
        return cls(f"Duplicate target id: {target_id}", target_id=target_id)

    @classmethod
    def unknown(cls, target_id: str) -> "RegistryError":
        return cls(f"Unknown target id: {target_id}", target_id=target_id)

    @classmethod
    def empty_id(cls) -> "RegistryError":
        return cls("Target ids must be non-empty")


class InvalidTransitionError(PickLLMError):
    """Raised when a target is moved along an edge the lifecycle forbids."""

    def __init__(
        self,
        target_id: str,
        current: LifecycleState,
        requested: LifecycleState,
    ):
        super().__init__(
            f"Target {target_id!r} cannot move from {current.value} to {requested.value}"
        )
        self.target_id = target_id
        self.current = current
        self.requested = requested


class PricingError(PickLLMError):
    """Raised when the pricing table cannot be fetched or parsed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PreferencesError(PickLLMError):
    """Raised when persisted preferences exist but cannot be read."""

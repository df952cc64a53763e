"""Core comparison components."""

from pickllm.core.orchestrator import Orchestrator
from pickllm.core.models import (
    ErrorKind,
    LifecycleState,
    PricingEntry,
    RunOverrides,
    RunSummary,
    SortKey,
    Target,
    TargetResult,
)

__all__ = [
    "Orchestrator",
    "ErrorKind",
    "LifecycleState",
    "PricingEntry",
    "RunOverrides",
    "RunSummary",
    "SortKey",
    "Target",
    "TargetResult",
]

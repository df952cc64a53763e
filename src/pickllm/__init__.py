"""
PickLLM - Side-by-side LLM response comparison

Sends one prompt to many model targets concurrently and compares their text,
token counts, latency and cost.
"""

__version__ = "1.0.0"

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

"""
Core data models for PickLLM.

Defines the unified types shared by the registry, the dispatch coordinator,
the result normalizer, the cost aggregator and the presentation view.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field


# Models offered by the original comparison page
DEFAULT_TARGETS: tuple[str, ...] = (
    "gpt-4-turbo",
    "gpt-4o",
    "gpt-4o-2024-05-13",
    "gpt-3.5-turbo-0125",
)


class LifecycleState(str, Enum):
    """Lifecycle of a single target within the comparison."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (LifecycleState.SUCCEEDED, LifecycleState.FAILED)


class ErrorKind(str, Enum):
    """Fixed classification of a failed target call."""

    INVALID_CREDENTIAL = "invalid_credential"
    QUOTA_EXCEEDED = "quota_exceeded"
    TARGET_NOT_ACCESSIBLE = "target_not_accessible"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    NETWORK_ERROR = "network_error"      # No response reached at all
    UNKNOWN_PROVIDER_ERROR = "unknown_provider_error"


class SortKey(str, Enum):
    """Orderings offered by the presentation view."""

    INSERTION = "insertion"
    ELAPSED = "elapsed"
    COST = "cost"
    TOKENS = "tokens"


class Target(BaseModel):
    """A configured model identifier under comparison."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    enabled: bool = True


class RunOverrides(BaseModel):
    """Optional sampling overrides; ``None`` means the endpoint default."""

    model_config = ConfigDict(frozen=True)

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, gt=0)


class RunRequest(BaseModel):
    """One user-triggered prompt plus its overrides."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    overrides: RunOverrides = Field(default_factory=RunOverrides)


class PricingEntry(BaseModel):
    """Per-token costs for one target, in USD."""

    model_config = ConfigDict(frozen=True)

    input_cost_per_token: float = Field(default=0.0, ge=0.0)
    output_cost_per_token: float = Field(default=0.0, ge=0.0)


PricingTable = Mapping[str, PricingEntry]


class TargetResult(BaseModel):
    """Uniform outcome of one target call, successful or not."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    response_text: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    input_cost: float = 0.0
    output_cost: float = 0.0
    total_cost: float = 0.0
    elapsed_seconds: float = 0.0
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        return self.error_kind is None


class TargetState(BaseModel):
    """Current lifecycle record for one target."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    lifecycle: LifecycleState = LifecycleState.IDLE
    result: TargetResult | None = None
    start_timestamp: float | None = None


class TargetView(BaseModel):
    """Read-only view handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    enabled: bool
    lifecycle: LifecycleState
    result: TargetResult | None = None
    start_timestamp: float | None = None


class RunSummary(BaseModel):
    """Aggregated cost figures for a fully settled run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    target_ids: tuple[str, ...] = ()
    total_cost: float = 0.0
    total_input_cost: float = 0.0
    total_output_cost: float = 0.0
    succeeded: int = 0
    failed: int = 0
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

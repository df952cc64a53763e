"""Shared fixtures for PickLLM tests."""

from __future__ import annotations

import pytest

from pickllm.core.config import reload_settings
from pickllm.core.models import PricingEntry
from tests.helpers import FakeClock


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from the user's environment and preferences."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("PICKLLM_PREFERENCES_PATH", str(tmp_path / "preferences.yaml"))
    monkeypatch.chdir(tmp_path)
    reload_settings()
    yield
    reload_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def worked_pricing():
    """Pricing with an entry for A and none for B."""
    return {"A": PricingEntry(input_cost_per_token=0.00001, output_cost_per_token=0.00002)}
